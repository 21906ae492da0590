from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from streamlist.services.stream_item_service import StreamItemError, StreamItemService

router = APIRouter(prefix="/stream-item", tags=["stream-item"])


def _get_service(request: Request) -> StreamItemService:
    svc = getattr(getattr(request.app, "state", None), "stream_items", None)
    if not svc:
        raise RuntimeError("StreamItemService nao configurado")
    return svc


async def _read_payload(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise StreamItemError("Corpo deve ser JSON valido.", "invalid_payload")


def _error_response(err: StreamItemError) -> JSONResponse:
    return JSONResponse({"ok": False, "error": err.code, "message": err.message}, status_code=err.status_code)


@router.get("")
async def list_stream_items(request: Request, coop: bool | None = None):
    return _get_service(request).list_items(coop)


@router.get("/{item_id}")
async def get_stream_item(item_id: int, request: Request):
    try:
        return _get_service(request).get_item(item_id)
    except StreamItemError as exc:
        return _error_response(exc)


@router.post("", status_code=201)
async def create_stream_item(request: Request):
    try:
        payload = await _read_payload(request)
        return _get_service(request).create_item(payload)
    except StreamItemError as exc:
        return _error_response(exc)


@router.put("/{item_id}")
async def update_stream_item(item_id: int, request: Request):
    try:
        payload = await _read_payload(request)
        return _get_service(request).update_item(item_id, payload)
    except StreamItemError as exc:
        return _error_response(exc)


@router.delete("/{item_id}")
async def delete_stream_item(item_id: int, request: Request):
    deleted = _get_service(request).delete_item(item_id)
    return {"ok": True, "deleted": deleted}


@router.delete("")
async def delete_stream_items(request: Request, coop: bool | None = None):
    try:
        deleted = _get_service(request).delete_items(coop)
    except StreamItemError as exc:
        return _error_response(exc)
    return {"ok": True, "deleted": deleted}
