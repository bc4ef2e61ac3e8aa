"""
Core Package

Contains the exchange-agnostic option chain pipeline:
- symbols: Option symbol codec ({C|P}-{ASSET}-{STRIKE}-{DDMMYY})
- normalizer: Raw ticker payloads -> NormalizedRecord
- aggregator: Grouping by expiry, top-N selection, distinct expiries
- series: Chart-ready strike and candlestick series
- csv_export: CSV documents for records and candles
- schemas: Pydantic models shared by every layer
"""
