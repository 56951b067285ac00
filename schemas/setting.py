from pydantic import BaseModel
from typing import Optional


class SettingValueIn(BaseModel):
    value: Optional[str] = None


class SettingOut(BaseModel):
    key: str
    value: Optional[str] = None

    class Config:
        from_attributes = True
