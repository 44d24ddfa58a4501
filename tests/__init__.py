"""
Test Suite for the Portfolio Factor Workbench

Unit tests live beside each package (analysis/tests, ingestion/tests,
pipeline/tests, reports/tests). Shared fixtures:
- fixtures/ff5_daily_sample.csv: French five-factor daily file excerpt
- fixtures/momentum_daily_sample.csv: French momentum daily file excerpt
"""
