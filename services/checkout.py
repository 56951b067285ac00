"""
Checkout: validate the customer, persist the order and build the WhatsApp link.
"""
import uuid
from typing import Any, Dict, List, Optional, Tuple

from core.logging import get_logger
from dal.results import ApiError
from schemas.checkout import Cart, CheckoutResult, Customer
from services.whatsapp import DEFAULT_WHATSAPP_NUMBER, build_order_message, only_digits, whatsapp_link

logger = get_logger(__name__)


class CheckoutValidationError(ValueError):
    pass


def validate_customer(customer: Customer) -> None:
    if len(customer.name.strip()) < 2:
        raise CheckoutValidationError("Name must have at least 2 characters")
    if len(only_digits(customer.phone)) < 10:
        raise CheckoutValidationError("Phone must have at least 10 digits")


def build_order_payload(
    customer: Customer,
    cart: Cart,
    seller: Optional[Dict[str, Any]] = None,
    shipping_fee: float = 0,
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """Order header and item snapshots for ``orders.create``."""
    items = [
        {
            "product_id": item.product.get("id"),
            "product_name": item.product.get("name", ""),
            "product_code": item.product.get("code"),
            "unit_price": float(item.product.get("price") or 0),
            "quantity": item.quantity,
            "total_price": item.line_total,
        }
        for item in cart
    ]
    subtotal = round(sum(i["total_price"] for i in items), 2)
    order = {
        "customer_name": customer.name.strip(),
        "customer_phone": customer.phone,
        "customer_cpf_cnpj": customer.cpf_cnpj or None,
        "notes": customer.notes or None,
        "subtotal": subtotal,
        "shipping_fee": shipping_fee,
        "total": round(subtotal + shipping_fee, 2),
        "seller_id": seller.get("id") if seller else None,
        "seller_name": seller.get("name") if seller else None,
    }
    return order, items


def resolve_whatsapp_number(store_settings: Dict[str, Any], seller: Optional[Dict[str, Any]] = None) -> str:
    if seller and seller.get("whatsapp"):
        return seller["whatsapp"]
    return store_settings.get("whatsapp_number") or DEFAULT_WHATSAPP_NUMBER


async def submit_order(
    dal,
    customer: Customer,
    cart: Cart,
    store_settings: Dict[str, Any],
    seller: Optional[Dict[str, Any]] = None,
) -> CheckoutResult:
    """Validate, save the order once and return the link that opens the chat.

    Raises:
        CheckoutValidationError: invalid customer data or empty cart; nothing is sent
    """
    validate_customer(customer)
    if not cart:
        raise CheckoutValidationError("Cart is empty")

    order, items = build_order_payload(customer, cart, seller)
    result = await dal.orders.create(order, items, idempotency_key=str(uuid.uuid4()))

    link = whatsapp_link(
        resolve_whatsapp_number(store_settings, seller),
        build_order_message(customer, cart, order["total"]),
    )
    if result.error:
        # The customer can still send the message; the order just isn't recorded
        logger.warning("Order for %s was not saved: %s", customer.name, result.error.message)
        return CheckoutResult(link=link, error=ApiError(message=result.error.message))
    return CheckoutResult(link=link, order=result.data)
