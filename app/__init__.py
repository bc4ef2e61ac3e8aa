"""
FastAPI Application Package

This package contains the main FastAPI application and routing logic.
It serves normalized Delta Exchange option chain data, chart series and CSV
exports to presentation layers.
"""
