from pydantic import BaseModel
from typing import List


class CategoryIn(BaseModel):
    name: str
    slug: str


class CategoryBatchIn(BaseModel):
    categories: List[CategoryIn]


class CategoryOut(BaseModel):
    id: str
    name: str
    slug: str

    class Config:
        from_attributes = True
