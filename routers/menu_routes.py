from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from database import Database, get_db
from schemas import MenuCreate, MenuPatch

router = APIRouter(prefix="/menus", tags=["menus"])


@router.get("")
def list_menus(db: Database = Depends(get_db)) -> List[dict]:
    return db.get_documents(db.menus)


@router.get("/{menu_id}")
def get_menu(menu_id: str, db: Database = Depends(get_db)):
    menu = db.get_document(db.menus, {"menu_id": menu_id})
    if not menu:
        raise HTTPException(status_code=404, detail="Menu not found")
    return menu


@router.post("", status_code=201)
def create_menu(payload: MenuCreate, db: Database = Depends(get_db)):
    menu_id = db.create_document(db.menus, payload, "menu_id")
    return db.get_document(db.menus, {"menu_id": menu_id})


@router.patch("/{menu_id}")
def update_menu(menu_id: str, patch: MenuPatch, db: Database = Depends(get_db)):
    menu = db.get_document(db.menus, {"menu_id": menu_id})
    if not menu:
        raise HTTPException(status_code=404, detail="Menu not found")
    fields = patch.to_update()
    # the window is checked against the stored bound the patch leaves alone
    start = fields.get("start_date", menu.get("start_date"))
    end = fields.get("end_date", menu.get("end_date"))
    if start and end and _naive(start) >= _naive(end):
        raise HTTPException(status_code=400, detail="start_date must be before end_date")
    db.update_document(db.menus, {"menu_id": menu_id}, fields)
    return db.get_document(db.menus, {"menu_id": menu_id})


def _naive(value: datetime) -> datetime:
    # Mongo hands datetimes back as naive UTC
    if value.tzinfo:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
