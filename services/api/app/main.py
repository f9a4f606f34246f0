"""Print shop orders API service entrypoint."""

import logging
import os

from fastapi import FastAPI

from services.api.app.db.init_db import init_db
from services.api.app.routers.order import router as order_router

app = FastAPI(title="Print Shop Orders API")

app.include_router(order_router)


@app.on_event("startup")
def _startup() -> None:
    logging.basicConfig(level=os.getenv("PRINTSHOP_LOG_LEVEL", "INFO").upper())
    if os.getenv("PRINTSHOP_ORDER_STORE", "sql").strip().lower() == "sql":
        init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
