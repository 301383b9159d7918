"""
Order summaries built by the MongoDB aggregation framework.

Order items are joined with their food, their order and, through the order's
table_id, the table. A missing food/order/table leaves the matching output
fields out; nothing raises.
"""

from typing import List, Optional

from database import FOOD, ORDER, TABLE, Database


def _lookup_one(from_collection: str, local_field: str, foreign_field: str, as_field: str) -> List[dict]:
    # lookup + unwind keeps at most one joined record per item and keeps items without a match
    return [
        {"$lookup": {
            "from": from_collection,
            "localField": local_field,
            "foreignField": foreign_field,
            "as": as_field,
        }},
        {"$unwind": {"path": f"${as_field}", "preserveNullAndEmptyArrays": True}},
    ]


def order_items_pipeline(order_id: str) -> List[dict]:
    return [
        {"$match": {"order_id": order_id}},
        *_lookup_one(FOOD, "food_id", "food_id", "food"),
        *_lookup_one(ORDER, "order_id", "order_id", "order"),
        *_lookup_one(TABLE, "order.table_id", "table_id", "table"),
        {"$project": {
            "_id": 0,
            "amount": "$food.price",
            "price": "$food.price",
            "food_name": "$food.name",
            "food_image": "$food.food_image",
            "table_number": "$table.table_number",
            "table_id": "$table.table_id",
            "order_id": 1,
            "quantity": 1,
        }},
        {"$group": {
            "_id": {
                "order_id": "$order_id",
                "table_id": "$table_id",
                "table_number": "$table_number",
            },
            "payment_due": {"$sum": "$amount"},
            "total_count": {"$sum": 1},
            "order_items": {"$push": "$$ROOT"},
        }},
        {"$project": {
            "_id": 0,
            "payment_due": 1,
            "total_count": 1,
            "order_id": "$_id.order_id",
            "table_number": "$_id.table_number",
            "order_items": 1,
        }},
    ]


def items_by_order(db: Database, order_id: str) -> List[dict]:
    """All summaries for one order; empty when the order has no items."""
    return list(db.order_items.aggregate(order_items_pipeline(order_id)))


def order_summary(db: Database, order_id: str) -> Optional[dict]:
    summaries = items_by_order(db, order_id)
    if not summaries:
        return None
    return summaries[0]
