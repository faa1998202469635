import json
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from .utils import normalize_email



MAX_LIMIT = 100
# Numeric(10, 2)
MAX_PRICE = Decimal("100000000")


def _required(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return str(value).strip()


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _parse_specifications(value):
    # multipart clients send the mapping as a JSON string
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError("Specifications must be a JSON object")
    if not isinstance(value, dict):
        raise ValueError("Specifications must be a JSON object")
    return {str(k): str(v) for k, v in value.items()}


# -------------------- Auth / users --------------------

class TokenUser(BaseModel):
    """Identity claims carried inside an access token."""
    id: int
    username: str
    email: str
    is_admin: bool = False


class LoginRequest(BaseModel):
    username: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("username")
    def username_required(cls, v):
        return _required(v, "Username is required")

    @field_validator("password")
    def password_required(cls, v):
        if not v:
            raise ValueError("Password is required")
        return v


class UserCreate(BaseModel):
    username: Optional[str] = Field(default=None, validate_default=True, max_length=50)
    email: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)
    is_admin: bool = False

    @field_validator("username")
    def username_required(cls, v):
        return _required(v, "Username is required")

    @field_validator("email")
    def email_valid(cls, v):
        return normalize_email(_required(v, "Please include a valid email"))

    @field_validator("password")
    def password_length(cls, v):
        if not v or len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = None
    password: Optional[str] = None
    is_admin: Optional[bool] = None

    @field_validator("username")
    def username_not_blank(cls, v):
        return None if v is None else _required(v, "Username cannot be empty")

    @field_validator("email")
    def email_valid(cls, v):
        return None if v is None else normalize_email(v)

    @field_validator("password")
    def password_length(cls, v):
        if v is not None and len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v


class PasswordChange(BaseModel):
    current_password: Optional[str] = Field(default=None, validate_default=True)
    new_password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("current_password")
    def current_required(cls, v):
        if not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("new_password")
    def new_length(cls, v):
        if not v or len(v) < 6:
            raise ValueError("New password must be at least 6 characters long")
        return v


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    is_admin: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -------------------- Catalog --------------------

class CategoryCreate(BaseModel):
    name: Optional[str] = Field(default=None, validate_default=True, max_length=100)
    slug: Optional[str] = Field(default=None, validate_default=True, max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    def name_required(cls, v):
        return _required(v, "Category name is required")

    @field_validator("slug")
    def slug_required(cls, v):
        return _required(v, "Category slug is required")


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    # an empty string clears the description
    description: Optional[str] = None

    @field_validator("name", "slug", mode="before")
    def blank_means_unchanged(cls, v):
        return _blank_to_none(v)


class ProductCreate(BaseModel):
    name: Optional[str] = Field(default=None, validate_default=True, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    model_number: Optional[str] = Field(default=None, validate_default=True, max_length=50)
    category_id: Optional[int] = Field(default=None, validate_default=True)
    description: Optional[str] = Field(default=None, validate_default=True)
    features: Optional[str] = None
    specifications: Optional[Dict[str, str]] = None
    price: Optional[Decimal] = None

    @field_validator("slug", "features", "price", mode="before")
    def blank_is_missing(cls, v):
        return _blank_to_none(v)

    @field_validator("name")
    def name_required(cls, v):
        return _required(v, "Product name is required")

    @field_validator("model_number")
    def model_number_required(cls, v):
        return _required(v, "Model number is required")

    @field_validator("category_id", mode="before")
    def category_required(cls, v):
        if _blank_to_none(v) is None:
            raise ValueError("Category is required")
        return v

    @field_validator("description")
    def description_required(cls, v):
        return _required(v, "Description is required")

    @field_validator("specifications", mode="before")
    def specifications_mapping(cls, v):
        v = _blank_to_none(v)
        return None if v is None else _parse_specifications(v)

    @field_validator("price")
    def non_negative(cls, v: Optional[Decimal]):
        if v is not None and v < 0:
            raise ValueError("Price must be non-negative")
        if v is not None and v >= MAX_PRICE:
            raise ValueError(f"Price must be less than {MAX_PRICE}")
        return v


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    model_number: Optional[str] = Field(default=None, max_length=50)
    category_id: Optional[int] = None
    description: Optional[str] = None
    features: Optional[str] = None
    specifications: Optional[Dict[str, str]] = None
    price: Optional[Decimal] = None

    @field_validator(
        "name", "slug", "model_number", "category_id", "description", "features", "price",
        mode="before",
    )
    def blank_means_unchanged(cls, v):
        return _blank_to_none(v)

    @field_validator("specifications", mode="before")
    def specifications_mapping(cls, v):
        v = _blank_to_none(v)
        return None if v is None else _parse_specifications(v)

    @field_validator("price")
    def non_negative(cls, v: Optional[Decimal]):
        if v is not None and v < 0:
            raise ValueError("Price must be non-negative")
        if v is not None and v >= MAX_PRICE:
            raise ValueError(f"Price must be less than {MAX_PRICE}")
        return v


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class CategoryRead(CategorySummary):
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductImageRead(BaseModel):
    id: int
    image_url: str
    is_primary: bool

    model_config = ConfigDict(from_attributes=True)


class ProductRead(BaseModel):
    id: int
    name: str
    slug: str
    model_number: Optional[str] = None
    description: Optional[str] = None
    features: Optional[str] = None
    specifications: Optional[Dict[str, str]] = None
    price: Optional[Decimal] = None
    category_id: Optional[int] = None
    category: Optional[CategorySummary] = None
    images: List[ProductImageRead] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListParams(BaseModel):
    category: Optional[str] = None
    search: Optional[str] = None
    sort: str = "newest"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=MAX_LIMIT)


# -------------------- Contact --------------------

class ContactCreate(BaseModel):
    name: Optional[str] = Field(default=None, validate_default=True, max_length=100)
    email: Optional[str] = Field(default=None, validate_default=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    subject: Optional[str] = Field(default=None, validate_default=True, max_length=255)
    message: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name")
    def name_required(cls, v):
        return _required(v, "Name is required")

    @field_validator("email")
    def email_valid(cls, v):
        return normalize_email(_required(v, "Please include a valid email"))

    @field_validator("subject")
    def subject_required(cls, v):
        return _required(v, "Subject is required")

    @field_validator("message")
    def message_required(cls, v):
        return _required(v, "Message is required")


class MessageUpdate(BaseModel):
    status: Optional[Literal["unread", "read"]] = None


class MessageRead(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -------------------- Envelopes --------------------

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")

    model_config = ConfigDict(populate_by_name=True)


class Ack(BaseModel):
    success: bool = True
    message: str


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: TokenUser


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserRead


class UserList(BaseModel):
    success: bool = True
    users: List[UserRead]


class CategoryEnvelope(BaseModel):
    success: bool = True
    category: CategoryRead


class CategoryList(BaseModel):
    success: bool = True
    categories: List[CategoryRead]


class ProductEnvelope(BaseModel):
    success: bool = True
    product: ProductRead


class ProductList(BaseModel):
    success: bool = True
    products: List[ProductRead]
    pagination: Pagination


class CategoryProductList(ProductList):
    category: CategoryRead


class MessageEnvelope(BaseModel):
    success: bool = True
    message: MessageRead


class MessageList(BaseModel):
    success: bool = True
    messages: List[MessageRead]
    pagination: Pagination
