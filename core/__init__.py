"""
Core functionality for the stock processor.

This package contains:
- Configuration (config.py)
- Errors (errors.py)
- Logging (logger.py)
- Inventory store and sessions (store.py, session_manager.py)
- Stock export (stock_export.py)
"""
