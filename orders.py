import logging
from typing import Optional

from fastapi import HTTPException
from pydantic import ValidationError

from database import Database, utcnow
from schemas import OrderItemCreate, OrderItemPack, format_validation_error

logger = logging.getLogger(__name__)


def ensure_table(db: Database, table_id: str) -> dict:
    table = db.get_document(db.tables, {"table_id": table_id})
    if not table:
        raise HTTPException(status_code=404, detail="Table was not found")
    return table


def create_order(db: Database, table_id: Optional[str] = None) -> str:
    if table_id is not None:
        ensure_table(db, table_id)
    return db.create_document(db.orders, {"order_date": utcnow(), "table_id": table_id}, "order_id")


def create_order_with_items(db: Database, pack: OrderItemPack) -> dict:
    """Create one order, then every item of the pack under it.

    Items are all validated before any is written, so either every item is
    inserted or none is. The order itself is written first and is not rolled
    back when an item is rejected.
    """
    order_id = create_order(db, pack.table_id)

    items = []
    for index, raw in enumerate(pack.order_items):
        try:
            item = OrderItemCreate.model_validate(raw)
        except ValidationError as err:
            logger.warning("Order %s left without items: item %d rejected", order_id, index)
            raise HTTPException(
                status_code=400,
                detail=f"order_items[{index}] {format_validation_error(err)}",
            )
        doc = item.model_dump()
        doc["order_id"] = order_id
        items.append(doc)

    order_item_ids = db.create_documents(db.order_items, items, "order_item_id")
    logger.info("Created order %s with %d items", order_id, len(order_item_ids))
    return {"order_id": order_id, "order_item_ids": order_item_ids}
