"""
Password hashing and JWT handling for restaurant staff accounts.

Each user document keeps the last issued access and refresh token. Logging in
or refreshing replaces both, so anything checked against the stored value
stops accepting the older pair.
"""

import logging
import uuid
from datetime import timedelta
from functools import lru_cache
from typing import Optional, Tuple

import bcrypt
import jwt
from bson import ObjectId
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings
from database import Database, get_app_settings, get_db, utcnow
from schemas import UserCreate

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "login or password is incorrect"
EMAIL_IN_USE = "this email is already in use"
PHONE_IN_USE = "this phone number is already in use"

# never sent back to clients
PRIVATE_FIELDS = {"password": 0}

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str, rounds: int = 14) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash or an over-long password
        return False


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return hash_password(uuid.uuid4().hex, rounds)


def generate_all_tokens(settings: Settings, email: str, first_name: str, last_name: str, user_id: str) -> Tuple[str, str]:
    now = utcnow()
    claims = {
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "uid": user_id,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(hours=settings.access_token_hours),
    }
    refresh_claims = {
        "uid": user_id,
        "type": "refresh",
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(hours=settings.refresh_token_hours),
    }
    token = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
    refresh_token = jwt.encode(refresh_claims, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, refresh_token


def decode_token(settings: Settings, token: str, expected_type: str = "access") -> dict:
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="token is invalid")
    if claims.get("type") != expected_type or not claims.get("uid"):
        raise HTTPException(status_code=401, detail="token is invalid")
    return claims


def update_all_tokens(db: Database, token: str, refresh_token: str, user_id: str) -> None:
    db.update_document(
        db.users,
        {"user_id": user_id},
        {"token": token, "refresh_token": refresh_token},
    )


def register_user(db: Database, settings: Settings, payload: UserCreate) -> dict:
    # Uniqueness is a read-then-write; two concurrent signups can both pass.
    if db.count_documents(db.users, {"email": payload.email}) > 0:
        raise HTTPException(status_code=409, detail=EMAIL_IN_USE)
    if db.count_documents(db.users, {"phone": payload.phone}) > 0:
        raise HTTPException(status_code=409, detail=PHONE_IN_USE)

    user = payload.model_dump()
    user["password"] = hash_password(payload.password, settings.bcrypt_rounds)

    object_id = ObjectId()
    user["token"], user["refresh_token"] = generate_all_tokens(
        settings, payload.email, payload.first_name, payload.last_name, str(object_id)
    )
    user_id = db.create_document(db.users, user, "user_id", object_id)
    logger.info("Registered user %s", user_id)
    return db.get_document(db.users, {"user_id": user_id}, PRIVATE_FIELDS)


def login_user(db: Database, settings: Settings, email: str, password: str) -> dict:
    found = db.get_document(db.users, {"email": email})
    # unknown email and wrong password look the same to the caller, in body and in timing
    hashed = found.get("password", "") if found else _dummy_hash(settings.bcrypt_rounds)
    if not verify_password(password, hashed) or not found:
        logger.info("Rejected login attempt")
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    token, refresh_token = generate_all_tokens(
        settings, found["email"], found["first_name"], found["last_name"], found["user_id"]
    )
    update_all_tokens(db, token, refresh_token, found["user_id"])
    logger.info("User %s logged in", found["user_id"])
    return db.get_document(db.users, {"user_id": found["user_id"]}, PRIVATE_FIELDS)


def refresh_tokens(db: Database, settings: Settings, refresh_token: str) -> dict:
    claims = decode_token(settings, refresh_token, expected_type="refresh")
    user = db.get_document(db.users, {"user_id": claims["uid"]})
    if not user or user.get("refresh_token") != refresh_token:
        raise HTTPException(status_code=401, detail="token is invalid")

    token, new_refresh_token = generate_all_tokens(
        settings, user["email"], user["first_name"], user["last_name"], user["user_id"]
    )
    update_all_tokens(db, token, new_refresh_token, user["user_id"])
    return {"token": token, "refresh_token": new_refresh_token}


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    claims = decode_token(settings, credentials.credentials)
    user = db.get_document(db.users, {"user_id": claims["uid"]}, PRIVATE_FIELDS)
    if not user or user.get("token") != credentials.credentials:
        raise HTTPException(status_code=401, detail="token is invalid")
    return user
