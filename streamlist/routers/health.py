from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    store = request.app.state.stream_items.store
    return {
        "ok": store.last_write_error is None,
        "store": store.name,
        "path": str(store.path),
        "records": len(store),
        "state": store.state.value,
        "last_write_error": store.last_write_error,
        "consecutive_write_failures": store.consecutive_write_failures,
    }
