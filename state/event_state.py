"""
Event state store: price-to-beat and last price per event slug.

Writes merge field-by-field with the stored row. A field missing from an
update keeps its stored value, it is never nulled implicitly.

The merge is read-then-upsert with no lock. Two concurrent writers for the
same slug can both read the old row, and one writer's field is then lost.
Callers that care serialize writes per slug.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Mapping

from errors import ValidationError
from state.models import EventStateSnapshot, to_number
from storage.base import TableBackend

logger = logging.getLogger(__name__)

TABLE = "event_state"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _price(value: Any) -> float | None:
    """Only real, finite JSON numbers count as supplied."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    price = to_number(value)
    return price if math.isfinite(price) else None


class EventStateStore:
    def __init__(self, backend: TableBackend) -> None:
        self._backend = backend

    def get(self) -> EventStateSnapshot:
        rows = self._backend.select(
            TABLE,
            columns=("event_slug", "price_to_beat", "last_price"),
            order_by="updated_at",
            descending=True,
        )
        snapshot = EventStateSnapshot()
        for row in rows:
            slug = row["event_slug"]
            if row.get("price_to_beat") is not None:
                snapshot.price_to_beat[slug] = float(row["price_to_beat"])
            if row.get("last_price") is not None:
                snapshot.last_price[slug] = float(row["last_price"])
        return snapshot

    def put(self, event_slug: Any, update: Mapping[str, Any]) -> None:
        slug = event_slug.strip() if isinstance(event_slug, str) else ""
        if not slug:
            raise ValidationError("eventSlug is required")

        existing = self._backend.select(
            TABLE,
            columns=("price_to_beat", "last_price"),
            filters={"event_slug": slug},
        )
        stored = existing[0] if existing else {}

        price_to_beat = _price(update.get("priceToBeat"))
        last_price = _price(update.get("lastPrice"))
        payload = {
            "event_slug": slug,
            "price_to_beat": price_to_beat if price_to_beat is not None else stored.get("price_to_beat"),
            "last_price": last_price if last_price is not None else stored.get("last_price"),
            "updated_at": _utc_now_iso(),
        }
        self._backend.upsert(TABLE, [payload], on_conflict=("event_slug",))
        logger.debug("Event state saved: %s", slug)
