"""
b24_contact_sync.api - CRM REST API client module
"""

from b24_contact_sync.api.crm_api import CrmAPI, CrmAPIError

__all__ = ["CrmAPI", "CrmAPIError"]
