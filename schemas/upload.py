from pydantic import BaseModel
from typing import Optional


class Base64UploadIn(BaseModel):
    base64: str
    filename: Optional[str] = None


class UploadOut(BaseModel):
    url: str
