from fastapi import APIRouter, Depends, HTTPException

from aggregation import items_by_order
from database import Database, get_db
from orders import create_order_with_items
from schemas import OrderItemPack, OrderItemPatch

router = APIRouter(prefix="/orderItems", tags=["order items"])


@router.get("")
def list_order_items(db: Database = Depends(get_db)):
    return db.get_documents(db.order_items)


@router.get("/item/{order_item_id}")
def get_order_item(order_item_id: str, db: Database = Depends(get_db)):
    item = db.get_document(db.order_items, {"order_item_id": order_item_id})
    if not item:
        raise HTTPException(status_code=404, detail="Order item not found")
    return item


@router.get("/{order_id}")
def get_order_items_by_order(order_id: str, db: Database = Depends(get_db)):
    return items_by_order(db, order_id)


@router.post("", status_code=201)
def create_order_items(pack: OrderItemPack, db: Database = Depends(get_db)):
    return create_order_with_items(db, pack)


@router.patch("/{order_item_id}")
def update_order_item(order_item_id: str, patch: OrderItemPatch, db: Database = Depends(get_db)):
    result = db.update_document(db.order_items, {"order_item_id": order_item_id}, patch.to_update())
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Order item not found")
    return db.get_document(db.order_items, {"order_item_id": order_item_id})
