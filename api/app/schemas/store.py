from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

ORDER_STATUS_PATTERN = "^(pending|processing|shipped|completed|cancelled|refunded)$"


class DashboardStats(BaseModel):
    product_count: int
    order_count: int
    customer_count: int


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str | None = Field(None, max_length=64)
    description: str | None = None
    price: Decimal = Field(default=Decimal("0"), ge=0)
    stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    sku: str | None = Field(None, max_length=64)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)


class ProductRead(BaseModel):
    id: UUID
    name: str
    sku: str | None
    description: str | None
    price: Decimal
    stock: int
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=64)


class CustomerRead(BaseModel):
    id: UUID
    email: str
    first_name: str | None
    last_name: str | None
    phone: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    customer_id: UUID | None = None
    status: str = Field(default="pending", pattern=ORDER_STATUS_PATTERN)
    total: Decimal = Field(default=Decimal("0"), ge=0)


class OrderUpdate(BaseModel):
    status: str | None = Field(None, pattern=ORDER_STATUS_PATTERN)
    total: Decimal | None = Field(None, ge=0)


class OrderRead(BaseModel):
    id: UUID
    customer_id: UUID | None
    status: str
    total: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}
