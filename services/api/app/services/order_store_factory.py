from __future__ import annotations

import os

from services.api.app.services.order_store_base import OrderStore
from services.api.app.services.order_store_memory import InMemoryOrderStore

_MEMORY_STORE: InMemoryOrderStore | None = None


def get_order_store() -> OrderStore:
    """Select the order store based on env vars.

    Defaults to SQL so orders survive restarts. The memory store is shared for the
    lifetime of the process.
    """

    global _MEMORY_STORE

    mode = os.getenv("PRINTSHOP_ORDER_STORE", "sql").strip().lower()

    if mode == "sql":
        from services.api.app.services.order_store_sql import SqlOrderStore

        return SqlOrderStore()

    if mode == "memory":
        if _MEMORY_STORE is None:
            _MEMORY_STORE = InMemoryOrderStore()
        return _MEMORY_STORE

    raise ValueError(f"Unknown PRINTSHOP_ORDER_STORE={mode!r}. Expected sql or memory.")
