from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from dal.results import ApiError


class Customer(BaseModel):
    name: str
    phone: str
    cpf_cnpj: str = ""
    notes: str = ""


class CartItem(BaseModel):
    """A product row as it was shown in the catalogue plus the chosen quantity."""

    product: Dict[str, Any]
    quantity: int = Field(default=1, ge=1)

    @property
    def line_total(self) -> float:
        return float(self.product.get("price") or 0) * self.quantity


class CheckoutResult(BaseModel):
    link: Optional[str] = None
    order: Optional[Dict[str, Any]] = None
    error: Optional[ApiError] = None


Cart = List[CartItem]
