"""
High-level use cases for the streamlist API.

Routers (FastAPI endpoints) call these services instead of manipulating the
DataStore directly.
"""
