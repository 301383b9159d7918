from fastapi import APIRouter, Depends, HTTPException

from database import Database, get_db
from orders import create_order, ensure_table
from schemas import OrderCreate, OrderPatch

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("")
def list_orders(db: Database = Depends(get_db)):
    return db.get_documents(db.orders)


@router.get("/{order_id}")
def get_order(order_id: str, db: Database = Depends(get_db)):
    order = db.get_document(db.orders, {"order_id": order_id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("", status_code=201)
def post_order(payload: OrderCreate, db: Database = Depends(get_db)):
    return {"order_id": create_order(db, payload.table_id)}


@router.patch("/{order_id}")
def update_order(order_id: str, patch: OrderPatch, db: Database = Depends(get_db)):
    if patch.table_id is not None:
        ensure_table(db, patch.table_id)
    result = db.update_document(db.orders, {"order_id": order_id}, patch.to_update())
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Order not found")
    return db.get_document(db.orders, {"order_id": order_id})
