"""
Clients for the external inventory, region and address services.

All three share ResilientJSONClient for transport, retries and decoding.
"""

from .address import AddressClient, normalize_postal_code, validate_postal_code
from .base import ResilientJSONClient
from .inventory import InventoryClient
from .region import RegionClient

__all__ = [
    "AddressClient",
    "InventoryClient",
    "RegionClient",
    "ResilientJSONClient",
    "normalize_postal_code",
    "validate_postal_code",
]
