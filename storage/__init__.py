"""
Storage Package

Handles the one-shot persistence this backend supports.

Current implementation:
- csv_store: Writes option chain and candlestick CSV exports to a directory

Fetched data otherwise lives in memory only.
"""
