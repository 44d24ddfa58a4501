"""
Data Ingestion Module

Handles fetching and validating data from external sources:
- yfinance for adjusted daily closes
- Kenneth French data library for daily factor returns
- Yahoo spark metadata for coarse classifications
- Holdings CSV import
"""

__version__ = "0.1.0"
