from pydantic import BaseModel
from typing import Optional


class SellerCreate(BaseModel):
    name: str
    slug: str
    whatsapp: Optional[str] = None
    active: bool = True


class SellerOut(BaseModel):
    id: str
    name: str
    slug: str
    whatsapp: Optional[str] = None
    active: bool

    class Config:
        from_attributes = True
