from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from services.api.app.services.artifact_base import ArtifactStore, ArtifactStoreError
from services.api.app.services.document_layout import (
    DEFAULT_LETTERHEAD,
    ITEM_TYPE_ORDER,
    Letterhead,
    group_items,
)
from services.api.app.services.document_render import RenderError, render_group
from services.api.app.services.item_rules import FieldError
from services.api.app.services.order_store_base import (
    OrderRecord,
    OrderStore,
    OrderWithItems,
    PersistenceError,
)
from services.api.app.services.order_validator import validate_order

logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    CREATED = "CREATED"
    DOCUMENTS_INCOMPLETE = "DOCUMENTS_INCOMPLETE"
    INVALID = "INVALID"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class StoredDocument:
    item_type: str
    filename: str
    reference: str


@dataclass(slots=True)
class OrderResult:
    status: SubmissionStatus
    order_id: int | None = None
    documents: list[StoredDocument] = field(default_factory=list)
    missing_documents: list[str] = field(default_factory=list)
    errors: list[FieldError] = field(default_factory=list)
    stage: str | None = None
    message: str | None = None

    @property
    def saved(self) -> bool:
        """True once the order row is durable, whatever happened to its documents."""

        return self.status in {SubmissionStatus.CREATED, SubmissionStatus.DOCUMENTS_INCOMPLETE}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """Validate, persist, render and store production documents for an order.

    Every step runs only if the previous one succeeded. Nothing is retried and
    nothing is rolled back once the order is saved.
    """

    def __init__(
        self,
        order_store: OrderStore,
        artifact_store: ArtifactStore,
        *,
        letterhead: Letterhead = DEFAULT_LETTERHEAD,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._orders = order_store
        self._artifacts = artifact_store
        self._letterhead = letterhead
        self._clock = clock

    def submit_order(self, raw: Any) -> OrderResult:
        validation = validate_order(raw)
        if not validation.ok:
            logger.info("Order rejected with %d validation error(s)", len(validation.errors))
            return OrderResult(status=SubmissionStatus.INVALID, errors=validation.errors)

        order_in = validation.order
        assert order_in is not None
        expected_types = [t for t in ITEM_TYPE_ORDER if any(i.item_type == t for i in order_in.items)]

        try:
            order, _customer = self._orders.create_order(order_in)
        except PersistenceError as e:
            logger.error("Order persistence failed at %s: %s", e.stage, e)
            return OrderResult(
                status=SubmissionStatus.FAILED,
                order_id=e.order_id,
                stage=e.stage,
                message=str(e),
            )

        try:
            stored = self._orders.get_order_with_items(order.id)
        except PersistenceError as e:
            logger.error("Order %s saved but could not be re-read: %s", order.id, e)
            return self._incomplete(order.id, [], expected_types, stage="fetch", message=str(e))

        if stored is None:
            logger.error("Order %s saved but not found on re-read", order.id)
            return self._incomplete(
                order.id, [], expected_types, stage="fetch", message="Order not found after save"
            )

        documents, missing = self.generate_documents(stored)

        if documents:
            try:
                self._orders.set_document_path(order.id, documents[0].filename)
            except PersistenceError as e:
                logger.warning("Order %s document path not recorded: %s", order.id, e)

        if missing:
            return self._incomplete(
                order.id,
                documents,
                missing,
                stage="render",
                message=f"Documents missing for: {', '.join(missing)}",
            )

        logger.info("Order %s complete with %d document(s)", order.id, len(documents))
        return OrderResult(status=SubmissionStatus.CREATED, order_id=order.id, documents=documents)

    def generate_documents(self, stored: OrderWithItems) -> tuple[list[StoredDocument], list[str]]:
        """Render and store one document per item-type group.

        Returns (stored documents, item types whose document is missing).
        """

        generated_at = self._clock()
        documents: list[StoredDocument] = []
        missing: list[str] = []

        for item_type, group in group_items(stored.items):
            try:
                doc = render_group(
                    stored.order,
                    stored.customer,
                    item_type,
                    group,
                    letterhead=self._letterhead,
                    generated_at=generated_at,
                )
            except RenderError as e:
                logger.error("%s", e)
                missing.append(item_type)
                continue

            try:
                reference = self._artifacts.store(doc.filename, doc.artifact_bytes)
            except ArtifactStoreError as e:
                logger.error(
                    "Order %s: could not store %s: %s", stored.order.id, doc.filename, e
                )
                missing.append(item_type)
                continue

            documents.append(
                StoredDocument(item_type=item_type, filename=doc.filename, reference=reference)
            )

        return documents, missing

    def list_orders(self) -> list[OrderRecord]:
        return self._orders.list_orders()

    def get_order(self, order_id: int) -> OrderWithItems | None:
        return self._orders.get_order_with_items(order_id)

    def fetch_document(self, filename: str) -> bytes | None:
        return self._artifacts.fetch(filename)

    def _incomplete(
        self,
        order_id: int,
        documents: list[StoredDocument],
        missing: list[str],
        *,
        stage: str,
        message: str,
    ) -> OrderResult:
        return OrderResult(
            status=SubmissionStatus.DOCUMENTS_INCOMPLETE,
            order_id=order_id,
            documents=documents,
            missing_documents=missing,
            stage=stage,
            message=message,
        )
