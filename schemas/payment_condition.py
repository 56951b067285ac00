from pydantic import BaseModel


class PaymentConditionCreate(BaseModel):
    name: str
    sort_order: int = 0
    active: bool = True


class PaymentConditionOut(BaseModel):
    id: str
    name: str
    active: bool
    sort_order: int

    class Config:
        from_attributes = True
