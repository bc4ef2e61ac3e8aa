"""
Exchange Connectors Package

Each exchange has its own subfolder with:
- api_client.py: REST API logic
- errors.py: Exchange-specific error type

Only Delta Exchange is implemented; data leaving a connector is raw JSON that
core.normalizer turns into typed records.
"""
