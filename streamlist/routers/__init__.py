"""
FastAPI routers grouped by resource (stream items, health).

Each module exposes an APIRouter included by the app factory in app.py.
Handlers are ``async def`` so the store is only touched from the event loop.
"""
