"""
Database Schemas for the AS Nuts storefront

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name.
"""
import math
import re
from datetime import datetime
from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

# Flat shipping charge added once per order
SHIPPING = 50.0

Category = Literal["cashews", "nuts", "dryfruits", "seeds", "premium"]
PaymentMethod = Literal["cod", "online"]
OrderStatus = Literal["pending", "completed", "cancelled"]
Role = Literal["customer", "owner"]

ORDER_TRANSITIONS = {
    "pending": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr
    password_hash: str = Field(..., description="Hashed password")
    role: Role = "customer"


class Product(BaseModel):
    id: str = Field(..., description="Slug derived from the product name")
    name: str
    name_tamil: Optional[str] = None
    price: float = Field(..., gt=0, description="Price per 50g")
    description: str
    image: str
    category: Category
    badge: Optional[str] = None


class CartLine(BaseModel):
    product_id: str
    name: str
    name_tamil: Optional[str] = None
    unit_price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1, description="Number of 50g units")
    line_total: float

    @model_validator(mode="after")
    def check_line_total(self):
        if not math.isclose(self.line_total, self.unit_price * self.quantity):
            raise ValueError("line_total must equal unit_price * quantity")
        return self


class Order(BaseModel):
    customer_name: str
    phone: str
    address: str
    pincode: str
    place: str
    payment_method: PaymentMethod
    items: List[CartLine] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    status: OrderStatus = "pending"
    source: str = "AS Nuts Website"


class OrderRecord(Order):
    """An order as returned by the API."""

    id: str
    created_at: Optional[datetime] = None


def product_slug(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def order_subtotal(lines: Iterable[CartLine]) -> float:
    return sum(line.line_total for line in lines)


def can_transition(current: str, new: str) -> bool:
    return new in ORDER_TRANSITIONS.get(current, set())
