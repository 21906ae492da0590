"""Stream-item use cases (listing, creation, edits) on top of the DataStore."""

from __future__ import annotations

from typing import Any, Mapping

from streamlist.domain.records import StreamItem, is_valid_id
from streamlist.repositories.datastore import DataStore, DataStoreError

ALLOWED_FIELDS = {"id", "name", "coop"}


class StreamItemError(Exception):
    def __init__(self, message: str, code: str = "invalid", status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    @classmethod
    def from_store(cls, exc: DataStoreError) -> "StreamItemError":
        return cls(exc.message, exc.code, exc.status_code)


def _validate_fields(payload: Mapping[str, Any], *, partial: bool) -> dict:
    if not isinstance(payload, Mapping):
        raise StreamItemError("Corpo deve ser um objeto JSON.", "invalid_payload")
    unknown = set(payload) - ALLOWED_FIELDS
    if unknown:
        raise StreamItemError(f"Campos desconhecidos: {', '.join(sorted(unknown))}", "invalid_payload")
    fields: dict[str, Any] = {}
    if "id" in payload:
        if not is_valid_id(payload["id"]):
            raise StreamItemError("'id' deve ser inteiro.", "invalid_payload")
        fields["id"] = payload["id"]
    if "name" in payload or not partial:
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise StreamItemError("'name' e obrigatorio.", "invalid_payload")
        fields["name"] = name.strip()
    if "coop" in payload:
        if not isinstance(payload["coop"], bool):
            raise StreamItemError("'coop' deve ser booleano.", "invalid_payload")
        fields["coop"] = payload["coop"]
    return fields


class StreamItemService:
    """Orchestrates the stream-item store for the HTTP routers."""

    def __init__(self, store: DataStore[StreamItem]) -> None:
        self.store = store

    def list_items(self, coop: bool | None = None) -> list[StreamItem]:
        if coop is None:
            return self.store.read_all()
        return self.store.read_where(lambda item: bool(item.get("coop", False)) == coop)

    def get_item(self, item_id: int) -> StreamItem:
        try:
            return self.store.get(item_id)
        except DataStoreError as exc:
            raise StreamItemError.from_store(exc) from exc

    def create_item(self, payload: Mapping[str, Any]) -> StreamItem:
        fields = _validate_fields(payload, partial=False)
        item_id = fields.pop("id") if "id" in fields else self.store.next_id()
        try:
            return self.store.create({"id": item_id, **fields})  # type: ignore[typeddict-item]
        except DataStoreError as exc:
            raise StreamItemError.from_store(exc) from exc

    def update_item(self, item_id: int, payload: Mapping[str, Any]) -> StreamItem:
        fields = _validate_fields(payload, partial=True)
        try:
            return self.store.update(item_id, fields)
        except DataStoreError as exc:
            raise StreamItemError.from_store(exc) from exc

    def delete_item(self, item_id: int) -> bool:
        return self.store.delete(item_id)

    def delete_items(self, coop: bool | None) -> int:
        if coop is None:
            raise StreamItemError("Informe o filtro 'coop' para remover em lote.", "missing_filter")
        return self.store.delete_where(lambda item: bool(item.get("coop", False)) == coop)
