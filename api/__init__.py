"""
HTTP shell of the stock processor (FastAPI app and routers).
"""
