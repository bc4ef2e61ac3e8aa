"""
Delta Exchange Connector

Public REST access to Delta Exchange (India) option markets:
- api_client.py: Async REST client with cursor pagination
- errors.py: DeltaAPIError and error-payload helpers
"""

from exchanges.delta.api_client import DeltaAPIClient
from exchanges.delta.errors import DeltaAPIError

__all__ = ["DeltaAPIClient", "DeltaAPIError"]
