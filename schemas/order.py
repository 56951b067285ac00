from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class OrderHeaderIn(BaseModel):
    customer_name: str
    customer_phone: str
    customer_cpf_cnpj: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    subtotal: float = 0
    shipping_fee: float = 0
    total: float = 0
    seller_id: Optional[str] = None
    seller_name: Optional[str] = None


class OrderItemIn(BaseModel):
    product_id: Optional[str] = None
    product_name: str
    product_code: Optional[str] = None
    unit_price: float
    quantity: int = Field(default=1, ge=1)
    total_price: float


class OrderCreate(BaseModel):
    order: OrderHeaderIn
    items: List[OrderItemIn]


class OrderItemOut(BaseModel):
    id: str
    order_id: str
    product_id: Optional[str] = None
    product_name: str
    product_code: Optional[str] = None
    unit_price: float
    quantity: int
    total_price: float

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: str
    customer_name: str
    customer_phone: str
    customer_cpf_cnpj: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    subtotal: float
    shipping_fee: float
    total: float
    status: str
    seller_id: Optional[str] = None
    seller_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
