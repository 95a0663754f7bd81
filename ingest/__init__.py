"""
Ingest pipeline for inventory files.

This package contains the import stages:
- Gate (routing by file type)
- Spreadsheet decoding (CSV/Excel into a cell grid)
- Header detection and column mapping
- Normalization and validation of product records
- Document extraction through the AI adapter (PDF/images)
"""
