"""
SQLite CRM/ERP Warehouse Package

Modules:
    bronze.py         - Ingests the raw CRM and ERP CSV extracts into the bronze layer.
    rules.py          - Lookup tables and field-level cleansing rules.
    normalizer.py     - Cleans, standardizes and deduplicates records per entity.
    silver.py         - Rebuilds the silver layer from bronze.
    quality_checks.py - Read-only data quality diagnostics for either layer.
    run_pipeline.py   - Orchestrates a full reload and exports outputs.

Version: 1.0.0
"""
__version__ = "1.0.0"
