#!/usr/bin/env python3
"""
Cadastrar um stream item direto no arquivo do DataStore (fora do servidor).

Uso:
  python scripts/add_item.py --name "Celeste" [--id 7] [--coop]
"""
from __future__ import annotations

import argparse
import sys

from streamlist.core.config import get_settings
from streamlist.core.logging_config import configure_logging
from streamlist.repositories.datastore import DataStore, DataStoreError
from streamlist.services.stream_item_service import StreamItemError, StreamItemService


def main() -> None:
    ap = argparse.ArgumentParser(description="Cadastrar stream item no DataStore")
    ap.add_argument("--name", required=True, help="Nome do item")
    ap.add_argument("--id", type=int, help="ID (default: maior ID + 1)")
    ap.add_argument("--coop", action="store_true", help="Marca o item como coop")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    store = DataStore(
        settings.stream_items_store,
        directory=settings.data_dir,
        indent=settings.json_indent,
    )
    service = StreamItemService(store)

    payload = {"name": args.name, "coop": bool(args.coop)}
    if args.id is not None:
        payload["id"] = args.id
    try:
        item = service.create_item(payload)
    except StreamItemError as exc:
        raise SystemExit(exc.message)
    # No event loop here, so nothing was scheduled: write now.
    store.flush_sync()
    print("OK: item cadastrado")
    print(f"  ID: {item['id']}")
    print(f"  Nome: {item['name']}")
    print(f"  Arquivo: {store.path}")


if __name__ == "__main__":
    try:
        main()
    except DataStoreError as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc.message}\n")
        raise SystemExit(1)
