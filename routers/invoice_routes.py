import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException

from aggregation import order_summary
from database import Database, get_db, utcnow
from schemas import InvoiceCreate, InvoicePatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("")
def list_invoices(db: Database = Depends(get_db)):
    return db.get_documents(db.invoices)


@router.get("/{invoice_id}")
def get_invoice(invoice_id: str, db: Database = Depends(get_db)):
    invoice = db.get_document(db.invoices, {"invoice_id": invoice_id})
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")

    order_id = invoice.get("order_id")
    summary = order_summary(db, order_id) if order_id else None
    if summary is None:
        raise HTTPException(status_code=404, detail="No order items found for this invoice")

    return {
        "invoice_id": invoice["invoice_id"],
        "order_id": order_id,
        "payment_method": invoice.get("payment_method") or "null",
        "payment_status": invoice.get("payment_status"),
        "payment_due": summary.get("payment_due"),
        "table_number": summary.get("table_number"),
        "payment_due_date": invoice.get("payment_due_date"),
        "order_details": summary.get("order_items", []),
    }


@router.post("", status_code=201)
def create_invoice(payload: InvoiceCreate, db: Database = Depends(get_db)):
    order = db.get_document(db.orders, {"order_id": payload.order_id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    invoice = payload.model_dump()
    invoice["payment_due_date"] = utcnow() + timedelta(days=1)
    invoice_id = db.create_document(db.invoices, invoice, "invoice_id")
    logger.info("Created invoice %s for order %s", invoice_id, payload.order_id)
    return db.get_document(db.invoices, {"invoice_id": invoice_id})


@router.patch("/{invoice_id}")
def update_invoice(invoice_id: str, patch: InvoicePatch, db: Database = Depends(get_db)):
    result = db.update_document(db.invoices, {"invoice_id": invoice_id}, patch.to_update())
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return db.get_document(db.invoices, {"invoice_id": invoice_id})
