"""
Credential lookup for task payloads.

Usage:
    from flowengine.credentials import CredentialManager

    creds = CredentialManager()
    token = creds.get("jira_api_token")
"""

from .base import CredentialManager, CredentialSource, CredentialSpec
from .integrations import INTEGRATION_CREDENTIALS

CREDENTIAL_SPECS = {
    **INTEGRATION_CREDENTIALS,
}

__all__ = [
    "CREDENTIAL_SPECS",
    "CredentialManager",
    "CredentialSource",
    "CredentialSpec",
]
