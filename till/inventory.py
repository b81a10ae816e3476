from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from till.db import transaction
from till.errors import InventoryItemNotFound
from till.models import InventoryItem
from till.schemas import InventoryItemCreate, InventoryItemOut, InventoryPatch

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    updated: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"{len(self.updated)} inventory items updated"
        if self.skipped:
            text += f", {len(self.skipped)} skipped (nothing to change)"
        return text


class InventoryStore:
    """Stock sheet shared by the till and the network sync API.

    There is no locking beyond the store's own transactions: two writers on
    the same row resolve as last commit wins.
    """

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def list_items(self) -> list[InventoryItemOut]:
        with transaction(self._sessions) as session:
            rows = session.scalars(
                select(InventoryItem).order_by(InventoryItem.category, InventoryItem.name)
            ).all()
            return [InventoryItemOut.model_validate(row) for row in rows]

    def shopping_list(self) -> list[InventoryItemOut]:
        with transaction(self._sessions) as session:
            rows = session.scalars(
                select(InventoryItem)
                .where(InventoryItem.needs_purchase.is_(True))
                .order_by(InventoryItem.category, InventoryItem.name)
            ).all()
            return [InventoryItemOut.model_validate(row) for row in rows]

    def add_item(self, payload: InventoryItemCreate) -> InventoryItemOut:
        with transaction(self._sessions) as session:
            row = InventoryItem(**payload.model_dump())
            session.add(row)
            session.flush()
            return InventoryItemOut.model_validate(row)

    def batch_update(self, patches: Iterable[InventoryPatch]) -> BatchResult:
        result = BatchResult()
        with transaction(self._sessions) as session:
            for patch in patches:
                if patch.is_empty:
                    logger.warning("Inventory item %s has no quantity_label or needs_purchase; skipped", patch.id)
                    result.skipped.append(patch.id)
                    continue
                values = patch.model_dump(exclude={"id"}, exclude_none=True)
                changed = session.execute(
                    update(InventoryItem).where(InventoryItem.id == patch.id).values(**values)
                )
                if changed.rowcount == 0:
                    raise InventoryItemNotFound(patch.id)
                result.updated.append(patch.id)
        logger.info(result.message)
        return result
