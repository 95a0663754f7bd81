"""
API routers for the stock processor.

- inventory: sessions, product list/edit/delete, validation, stats
- ingest: spreadsheet/document uploads and mapping confirmation
- export: CSV and XML stock files
"""
