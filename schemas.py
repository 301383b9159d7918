"""
Request schemas for the Restaurant Management API

Create models validate incoming documents for the MongoDB collections
(menu, food, table, order, orderItem, invoice, user). Patch models list the
fields a PATCH/PUT may change; every field they carry maps onto the same key
of the stored document.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from pricing import to_fixed

PaymentMethod = Literal["CARD", "CASH"]
PaymentStatus = Literal["PENDING", "PAID"]


class Patch(BaseModel):
    def to_update(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# Menus
class MenuCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Menu name")
    category: str = Field(..., min_length=1, description="Category like Lunch, Drinks")
    start_date: Optional[datetime] = Field(None, description="Menu is valid from")
    end_date: Optional[datetime] = Field(None, description="Menu is valid until")

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


class MenuPatch(Patch):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


# Foods
class FoodCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Dish name")
    price: float = Field(..., ge=0, description="Price, stored with 2 decimals")
    food_image: str = Field(..., description="Image URL")
    menu_id: str = Field(..., description="Reference to menu.menu_id")

    @field_validator("price")
    @classmethod
    def fix_price(cls, v: float) -> float:
        return to_fixed(v, 2)


class FoodPatch(Patch):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    food_image: Optional[str] = None
    menu_id: Optional[str] = None

    @field_validator("price")
    @classmethod
    def fix_price(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else to_fixed(v, 2)


# Tables
class TableCreate(BaseModel):
    table_number: int = Field(..., ge=1)
    number_of_guests: int = Field(..., ge=1, description="Seats at the table")


class TablePatch(Patch):
    table_number: Optional[int] = Field(None, ge=1)
    number_of_guests: Optional[int] = Field(None, ge=1)


# Orders
class OrderCreate(BaseModel):
    table_id: Optional[str] = Field(None, description="Reference to table.table_id")


class OrderPatch(Patch):
    table_id: Optional[str] = None


class OrderItemCreate(BaseModel):
    food_id: str = Field(..., min_length=1, description="Reference to food.food_id")
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)

    @field_validator("unit_price")
    @classmethod
    def fix_unit_price(cls, v: float) -> float:
        return to_fixed(v, 2)


class OrderItemPatch(Patch):
    food_id: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=1)
    unit_price: Optional[float] = Field(None, ge=0)

    @field_validator("unit_price")
    @classmethod
    def fix_unit_price(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else to_fixed(v, 2)


class OrderItemPack(BaseModel):
    """An order and its items in one request.

    Items stay raw here; they are checked one by one after the order exists.
    """
    table_id: Optional[str] = None
    order_items: List[Dict[str, Any]] = Field(..., min_length=1, description="List of {food_id, quantity, unit_price}")


# Invoices
class InvoiceCreate(BaseModel):
    order_id: str = Field(..., min_length=1)
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = Field(None, validate_default=True)

    @field_validator("payment_status")
    @classmethod
    def default_status(cls, v: Optional[str]) -> str:
        return v or "PENDING"


class InvoicePatch(Patch):
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None


# Users
def _check_password(v: Optional[str]) -> Optional[str]:
    # bcrypt only looks at the first 72 bytes
    if v is not None and len(v.encode("utf-8")) > 72:
        raise ValueError("password must be at most 72 bytes")
    return v


class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=20)
    password: str = Field(..., min_length=6)
    avatar: Optional[str] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return _check_password(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenRefresh(BaseModel):
    refresh_token: str


class UserPatch(Patch):
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=5, max_length=20)
    avatar: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return _check_password(v)


def format_validation_error(err) -> str:
    """One line listing each offending field, for {"error": ...} bodies."""
    parts = []
    for e in err.errors():
        field = ".".join(str(p) for p in e["loc"] if p != "body")
        parts.append(f"{field}: {e['msg']}" if field else e["msg"])
    return "; ".join(parts)
