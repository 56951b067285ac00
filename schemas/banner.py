from pydantic import BaseModel
from typing import Optional


class BannerCreate(BaseModel):
    image_url: str
    link: Optional[str] = None
    sort_order: int = 0
    active: bool = True


class BannerOut(BaseModel):
    id: str
    image_url: str
    link: Optional[str] = None
    sort_order: int
    active: bool

    class Config:
        from_attributes = True
