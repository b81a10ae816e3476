"""Menu catalog reads and batch price edits.

Target tables and price columns come from a closed mapping; caller-supplied
names are only ever used as lookup keys, never spliced into SQL.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from till.db import Base, transaction
from till.errors import CatalogItemNotFound, ValidationFailure
from till.models import Extra, OtherProduct, Pizza, Sandwich
from till.schemas import CatalogTable, PriceUpdate

logger = logging.getLogger(__name__)

PRICE_COLUMNS: dict[CatalogTable, tuple[type[Base], frozenset[str]]] = {
    CatalogTable.PIZZAS: (Pizza, frozenset({"price_xl", "price_medium", "price_small"})),
    CatalogTable.EXTRAS: (Extra, frozenset({"price_xl", "price_medium", "price_single"})),
    CatalogTable.SANDWICHES: (Sandwich, frozenset({"price"})),
    CatalogTable.OTHER_PRODUCTS: (OtherProduct, frozenset({"price"})),
}

_LISTING_ORDER = {
    CatalogTable.PIZZAS: (Pizza.name,),
    CatalogTable.EXTRAS: (Extra.name,),
    CatalogTable.SANDWICHES: (Sandwich.name,),
    CatalogTable.OTHER_PRODUCTS: (OtherProduct.category, OtherProduct.name),
}


def _row_to_dict(row: Base) -> dict:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


class Catalog:
    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def list_products(self) -> dict[str, list[dict]]:
        products: dict[str, list[dict]] = {}
        with transaction(self._sessions) as session:
            for table, (model, _) in PRICE_COLUMNS.items():
                rows = session.scalars(select(model).order_by(*_LISTING_ORDER[table])).all()
                products[table.value] = [_row_to_dict(row) for row in rows]
        return products

    def update_prices(self, updates: Iterable[PriceUpdate]) -> int:
        updates = list(updates)
        for change in updates:
            _, columns = PRICE_COLUMNS[change.table]
            if change.column not in columns:
                raise ValidationFailure(f"{change.column!r} is not a price column of {change.table.value}")
        with transaction(self._sessions) as session:
            for change in updates:
                model, _ = PRICE_COLUMNS[change.table]
                result = session.execute(
                    update(model).where(model.id == change.item_id).values({change.column: change.price})
                )
                if result.rowcount == 0:
                    raise CatalogItemNotFound(change.item_id)
        logger.info("%s catalog prices updated", len(updates))
        return len(updates)
