"""
Services Package

Orchestration on top of the Delta client: multi-asset option chain fetches
with per-asset failure isolation and optional candle history.
"""
