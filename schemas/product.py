from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class ProductCreate(BaseModel):
    name: str
    slug: str
    price: float
    code: Optional[str] = None
    original_price: Optional[float] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category_id: Optional[str] = None
    active: Optional[bool] = None
    featured: bool = False
    featured_order: Optional[int] = None
    brand: Optional[str] = None
    quantity: Optional[int] = None
    unit_of_measure: Optional[str] = None
    reference: Optional[str] = None
    manufacturer_code: Optional[str] = None
    quick_filter_1: bool = False
    quick_filter_2: bool = False


class ProductCodeOut(BaseModel):
    id: str

    class Config:
        from_attributes = True


class ProductOut(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    slug: str
    price: float
    original_price: Optional[float] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category_id: Optional[str] = None
    active: bool
    featured: bool
    featured_order: Optional[int] = None
    brand: Optional[str] = None
    quantity: Optional[int] = None
    unit_of_measure: Optional[str] = None
    reference: Optional[str] = None
    manufacturer_code: Optional[str] = None
    quick_filter_1: bool
    quick_filter_2: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
