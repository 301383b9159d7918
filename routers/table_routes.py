from fastapi import APIRouter, Depends, HTTPException

from database import Database, get_db
from schemas import TableCreate, TablePatch

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("")
def list_tables(db: Database = Depends(get_db)):
    return db.get_documents(db.tables)


@router.get("/{table_id}")
def get_table(table_id: str, db: Database = Depends(get_db)):
    table = db.get_document(db.tables, {"table_id": table_id})
    if not table:
        raise HTTPException(status_code=404, detail="Table not found")
    return table


@router.post("", status_code=201)
def create_table(payload: TableCreate, db: Database = Depends(get_db)):
    table_id = db.create_document(db.tables, payload, "table_id")
    return db.get_document(db.tables, {"table_id": table_id})


@router.patch("/{table_id}")
def update_table(table_id: str, patch: TablePatch, db: Database = Depends(get_db)):
    result = db.update_document(db.tables, {"table_id": table_id}, patch.to_update())
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Table not found")
    return db.get_document(db.tables, {"table_id": table_id})
