from fastapi import APIRouter, Depends, HTTPException, Query

import auth
from config import Settings
from database import Database, get_app_settings, get_db
from schemas import TokenRefresh, UserCreate, UserLogin, UserPatch

router = APIRouter(prefix="/users", tags=["users"])

LIST_PROJECTION = {"password": 0, "refresh_token": 0}


@router.get("")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    users = db.get_documents(db.users, skip=(page - 1) * limit, limit=limit, projection=LIST_PROJECTION)
    return {
        "users": users,
        "total_count": db.count_documents(db.users),
        "page": page,
        "per_page": limit,
    }


@router.get("/me")
def whoami(user: dict = Depends(auth.get_current_user)):
    return user


@router.get("/{user_id}")
def get_user(user_id: str, db: Database = Depends(get_db)):
    user = db.get_document(db.users, {"user_id": user_id}, auth.PRIVATE_FIELDS)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/signup", status_code=201)
def signup(
    payload: UserCreate,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return auth.register_user(db, settings, payload)


@router.post("/login")
def login(
    payload: UserLogin,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return auth.login_user(db, settings, payload.email, payload.password)


@router.post("/refresh")
def refresh(
    payload: TokenRefresh,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return auth.refresh_tokens(db, settings, payload.refresh_token)


@router.put("/update/{user_id}")
def update_user(
    user_id: str,
    patch: UserPatch,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    current: dict = Depends(auth.get_current_user),
):
    if current["user_id"] != user_id:
        raise HTTPException(status_code=403, detail="cannot update another user")
    fields = patch.to_update()
    if "phone" in fields:
        taken = db.count_documents(db.users, {"phone": fields["phone"], "user_id": {"$ne": user_id}})
        if taken:
            raise HTTPException(status_code=409, detail=auth.PHONE_IN_USE)
    if "password" in fields:
        fields["password"] = auth.hash_password(fields["password"], settings.bcrypt_rounds)
    db.update_document(db.users, {"user_id": user_id}, fields)
    return {"message": "User updated successfully"}
