from fastapi import APIRouter, Depends, HTTPException, Query

from database import Database, get_db
from schemas import FoodCreate, FoodPatch

router = APIRouter(prefix="/foods", tags=["foods"])


def ensure_menu(db: Database, menu_id: str) -> dict:
    menu = db.get_document(db.menus, {"menu_id": menu_id})
    if not menu:
        raise HTTPException(status_code=404, detail="menu was not found")
    return menu


@router.get("")
def list_foods(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    return db.get_documents(db.foods, skip=(page - 1) * limit, limit=limit)


@router.get("/{food_id}")
def get_food(food_id: str, db: Database = Depends(get_db)):
    food = db.get_document(db.foods, {"food_id": food_id})
    if not food:
        raise HTTPException(status_code=404, detail="Food not found")
    return food


@router.post("", status_code=201)
def create_food(payload: FoodCreate, db: Database = Depends(get_db)):
    ensure_menu(db, payload.menu_id)
    food_id = db.create_document(db.foods, payload, "food_id")
    return db.get_document(db.foods, {"food_id": food_id})


@router.patch("/{food_id}")
def update_food(food_id: str, patch: FoodPatch, db: Database = Depends(get_db)):
    if patch.menu_id is not None:
        ensure_menu(db, patch.menu_id)
    result = db.update_document(db.foods, {"food_id": food_id}, patch.to_update())
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Food not found")
    return db.get_document(db.foods, {"food_id": food_id})
