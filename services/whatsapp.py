"""
WhatsApp click-to-chat links and the order message sent through them.
"""
import re
from typing import Optional
from urllib.parse import quote

from schemas.checkout import Cart, Customer

DEFAULT_WHATSAPP_NUMBER = "5511999999999"


def only_digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def format_money(value) -> str:
    """``1234.5`` -> ``"1234,50"``"""
    return f"{float(value or 0):.2f}".replace(".", ",")


def format_phone(value: str) -> str:
    """Mask a Brazilian phone number as ``(11) 98765-4321``."""
    digits = only_digits(value)[:11]
    if len(digits) <= 2:
        return digits
    if len(digits) <= 7:
        return f"({digits[:2]}) {digits[2:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"


def format_cpf_cnpj(value: str) -> str:
    digits = only_digits(value)[:14]
    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"{digits[:3]}.{digits[3:]}"
    if len(digits) <= 9:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:]}"
    if len(digits) <= 11:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    if len(digits) <= 12:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:]}"
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def whatsapp_link(number: Optional[str], message: str) -> str:
    number = only_digits(number) or DEFAULT_WHATSAPP_NUMBER
    return f"https://wa.me/{number}?text={quote(message, safe='')}"


def product_interest_link(number: Optional[str], product_name: str, price, catalog_url: str) -> str:
    message = (
        "Olá! Tenho interesse no produto:\n\n"
        f"*{product_name}*\n"
        f"Preço: R$ {format_money(price)}\n\n"
        f"Catálogo: {catalog_url}"
    )
    return whatsapp_link(number, message)


def general_link(number: Optional[str]) -> str:
    return whatsapp_link(number, "Olá! Vi o catálogo e gostaria de mais informações.")


def build_order_message(customer: Customer, cart: Cart, total) -> str:
    customer_lines = [f"*Cliente:* {customer.name}", f"*WhatsApp:* {customer.phone}"]
    if customer.cpf_cnpj:
        customer_lines.append(f"*CPF/CNPJ:* {customer.cpf_cnpj}")
    if customer.notes:
        customer_lines.append(f"*Observações:* {customer.notes}")

    item_lines = [
        f"• {item.quantity}x {item.product.get('name', '')} "
        f"(Cód: {item.product.get('code') or 'N/A'}) - R$ {format_money(item.line_total)}"
        for item in cart
    ]

    return (
        "Olá, gostaria de fazer o pedido:\n\n"
        + "\n".join(customer_lines)
        + "\n\n"
        + "\n".join(item_lines)
        + f"\n\n*Total: R$ {format_money(total)}*"
    )
