"""
REST client for the storefront backend.
"""

from storefront.api.client import ApiClient, AUTH_HEADER

__all__ = [
    'ApiClient',
    'AUTH_HEADER',
]
