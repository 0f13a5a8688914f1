"""
b24_contact_sync - Bitrix24 contact cleanup and write-back

Pulls every CRM contact, repairs name, phone and email data, removes
duplicate multi-valued entries and writes back only changed records.
"""

__version__ = "0.1.0"
