"""
b24_contact_sync.sync - Contact normalization and sync module

Contains the contact data model, the per-contact normalization pipeline
and the paginated sync engine.
"""
