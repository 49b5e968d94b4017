"""
Database Schemas for the Fireworks Storefront

Each document model below maps to one MongoDB collection:
- Profile -> "users"
- Product -> "products"
- Order -> "orders"

Request bodies used by the API sit at the bottom of the file.
"""
from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, EmailStr

Role = Literal["user", "admin"]
OrderStatus = Literal["pending", "verified", "completed", "cancelled"]
VerificationStatus = Literal["pending", "verified", "failed"]

DEFAULT_IMAGE = "https://images.pexels.com/photos/1387174/pexels-photo-1387174.jpeg?auto=compress&cs=tinysrgb&w=400"


class Profile(BaseModel):
    uid: str = Field(..., description="Identity id issued by the identity provider")
    email: EmailStr
    name: str = Field(..., description="Display name")
    role: Role = "user"
    phone: Optional[str] = None
    address: Optional[str] = None


class Product(BaseModel):
    name: str
    category: str = Field(..., description="One of catalog.CATEGORIES")
    price: float = Field(..., ge=0)
    description: str = ""
    image: str = DEFAULT_IMAGE
    in_stock: bool = True
    featured: bool = False


class CartLineItem(BaseModel):
    id: str = Field(..., description="Product id")
    name: str
    price: float = Field(..., ge=0, description="Price snapshot taken when added")
    quantity: int = Field(1, ge=1)
    category: str
    image: str = DEFAULT_IMAGE


class CustomerInfo(BaseModel):
    name: str = ""
    phone: str = ""
    address: str = ""
    alternate_phone: Optional[str] = None


class OrderItem(BaseModel):
    id: str
    name: str
    price: float
    quantity: int
    category: str


class Order(BaseModel):
    user_id: str
    customer_info: CustomerInfo
    items: List[OrderItem]
    total_amount: float
    status: OrderStatus = "pending"
    payment_method: Literal["cod"] = "cod"
    order_date: datetime
    verification_status: VerificationStatus = "pending"
    verification_notes: Optional[str] = None


# ----------------------- Request bodies -----------------------

class SignupBody(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None
    address: Optional[str] = None


class LoginBody(BaseModel):
    email: EmailStr
    password: str


class ProductCreateBody(Product):
    pass


class ProductUpdateBody(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None


class CartAddBody(BaseModel):
    product_id: str


class CartQuantityBody(BaseModel):
    quantity: int


class VerifyBody(BaseModel):
    accepted: bool
    notes: Optional[str] = None
