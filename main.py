import logging
import math
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from bson.errors import InvalidId
from bson.objectid import ObjectId
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr, Field
from pymongo import ReturnDocument

import database
from database import create_document, get_documents
from schemas import (
    SHIPPING,
    Category,
    Order as OrderSchema,
    OrderStatus,
    Product as ProductSchema,
    User as UserSchema,
    can_transition,
    order_subtotal,
    product_slug,
)
from storefront.defaults import DEFAULT_PRODUCTS

logger = logging.getLogger(__name__)

app = FastAPI(title="AS Nuts Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------- Utils -----------------------
JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
JWT_ALGO = "HS256"
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
OWNER_EMAIL = os.getenv("OWNER_EMAIL", "owner@asnuts.com")
OWNER_PASSWORD = os.getenv("OWNER_PASSWORD", "ASNuts2024!")
security = HTTPBearer()


def get_db():
    if database.db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return database.db


def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    # products carry their own slug id
    if "id" not in doc and isinstance(_id, ObjectId):
        doc["id"] = str(_id)
    doc.pop("password_hash", None)
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc


def ensure_object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid ID format")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=10)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False


def create_token(payload: dict) -> str:
    exp = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRE_HOURS)
    to_encode = {**payload, "exp": exp}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGO)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    payload = decode_token(credentials.credentials)
    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    try:
        user = get_db()["user"].find_one({"_id": ObjectId(user_id)})
    except InvalidId:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return serialize_doc(user)


def auth_response(message: str, user: dict) -> dict:
    token = create_token({"id": user["id"], "email": user["email"], "role": user["role"]})
    return {
        "message": message,
        "token": token,
        "user": {"id": user["id"], "name": user["name"], "email": user["email"], "role": user["role"]},
    }


# ----------------------- Models -----------------------
class RegisterBody(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginBody(BaseModel):
    email: EmailStr
    password: str


class ProductCreateBody(BaseModel):
    id: Optional[str] = None
    name: str
    name_tamil: Optional[str] = None
    price: float = Field(..., gt=0)
    description: str
    image: str
    category: Category
    badge: Optional[str] = None


class ProductUpdateBody(BaseModel):
    name: Optional[str] = None
    name_tamil: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[Category] = None
    badge: Optional[str] = None


class OrderCreateBody(OrderSchema):
    pass


class OrderStatusBody(BaseModel):
    status: OrderStatus


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "AS Nuts API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()[:10]
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ----------------------- Auth -----------------------
@app.post("/api/register", status_code=201)
def register(body: RegisterBody):
    db = get_db()
    if db["user"].find_one({"email": body.email}):
        raise HTTPException(status_code=400, detail="User already exists with this email")
    user = UserSchema(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        role="owner" if body.email == OWNER_EMAIL else "customer",
    )
    user_id = create_document("user", user)
    logger.info("Registered %s user %s", user.role, user.email)
    return auth_response(
        "User registered successfully",
        {"id": user_id, "name": user.name, "email": user.email, "role": user.role},
    )


@app.post("/api/login")
def login(body: LoginBody):
    user = get_db()["user"].find_one({"email": body.email})
    if not user or not verify_password(body.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return auth_response("Login successful", serialize_doc(user))


# ----------------------- Products -----------------------
@app.get("/api/products")
def list_products():
    get_db()
    items = get_documents("product", newest_first=True)
    return [serialize_doc(i) for i in items]


@app.post("/api/products", status_code=201)
def create_product(body: ProductCreateBody, user=Depends(get_current_user)):
    if user.get("role") != "owner":
        raise HTTPException(status_code=403, detail="Only owners can add products")
    db = get_db()
    product_id = body.id or product_slug(body.name)
    if not product_id:
        raise HTTPException(status_code=400, detail="Product name must contain letters or digits")
    if db["product"].find_one({"id": product_id}):
        raise HTTPException(status_code=400, detail="Product with this ID already exists")
    product = ProductSchema(**{**body.model_dump(), "id": product_id})
    create_document("product", product)
    logger.info("Product %s added by %s", product_id, user["email"])
    return {
        "message": "Product added successfully",
        "product": serialize_doc(db["product"].find_one({"id": product_id})),
    }


@app.put("/api/products/{product_id}")
def update_product(product_id: str, body: ProductUpdateBody, user=Depends(get_current_user)):
    if user.get("role") != "owner":
        raise HTTPException(status_code=403, detail="Only owners can update products")
    update = body.model_dump(exclude_none=True)
    update["updated_at"] = datetime.now(timezone.utc)
    doc = get_db()["product"].find_one_and_update(
        {"id": product_id},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"message": "Product updated successfully", "product": serialize_doc(doc)}


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, user=Depends(get_current_user)):
    if user.get("role") != "owner":
        raise HTTPException(status_code=403, detail="Only owners can delete products")
    res = get_db()["product"].delete_one({"id": product_id})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Product %s deleted by %s", product_id, user["email"])
    return {"message": "Product deleted successfully"}


# ----------------------- Orders -----------------------
@app.post("/api/orders", status_code=201)
def create_order(body: OrderCreateBody):
    db = get_db()
    expected = order_subtotal(body.items) + SHIPPING
    if not math.isclose(body.total, expected):
        raise HTTPException(status_code=400, detail="Order total does not match items")
    order = body.model_copy(update={"status": "pending"})
    oid = create_document("order", order)
    logger.info("Order %s placed by %s (%s, %.2f)", oid, order.customer_name, order.payment_method, order.total)
    return {
        "message": "Order created successfully",
        "order": serialize_doc(db["order"].find_one({"_id": ObjectId(oid)})),
    }


@app.get("/api/orders")
def list_orders(user=Depends(get_current_user)):
    if user.get("role") != "owner":
        raise HTTPException(status_code=403, detail="Only owners can view orders")
    get_db()
    return [serialize_doc(o) for o in get_documents("order", newest_first=True)]


@app.patch("/api/orders/{order_id}")
def update_order_status(order_id: str, body: OrderStatusBody, user=Depends(get_current_user)):
    if user.get("role") != "owner":
        raise HTTPException(status_code=403, detail="Only owners can update orders")
    db = get_db()
    _id = ensure_object_id(order_id)
    order = db["order"].find_one({"_id": _id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    current = order.get("status", "pending")
    if not can_transition(current, body.status):
        raise HTTPException(status_code=409, detail=f"Cannot change order status from {current} to {body.status}")
    doc = db["order"].find_one_and_update(
        {"_id": _id},
        {"$set": {"status": body.status, "updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Order %s marked %s by %s", order_id, body.status, user["email"])
    return {"message": f"Order status updated to {body.status}", "order": serialize_doc(doc)}


# ----------------------- Seed Demo Data -----------------------
@app.post("/seed")
def seed():
    db = get_db()
    if db["user"].count_documents({"role": "owner"}) == 0:
        owner = UserSchema(name="AS Nuts Owner", email=OWNER_EMAIL, password_hash=hash_password(OWNER_PASSWORD), role="owner")
        create_document("user", owner)
        logger.info("Default owner user created: %s", OWNER_EMAIL)
    if db["product"].count_documents({}) > 0:
        return {"seeded": False, "message": "Products already exist"}
    for p in DEFAULT_PRODUCTS:
        create_document("product", ProductSchema(**p))
    return {"seeded": True, "products": db["product"].count_documents({})}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
