"""WhatsApp deep links for contacting a customer about their order."""

import re
from urllib.parse import quote

from zequi_storefront.models.order_models import Order
from zequi_storefront.services.pricing import format_amount, line_total_cents, price_to_cents

WHATSAPP_BASE_URL = "https://wa.me/"
DEFAULT_COUNTRY_CODE = "593"


def normalize_phone(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Turn a locally typed number into country-code-prefixed digits.

    Non-digits are dropped, a leading trunk zero is removed, and numbers that
    already carry the country code are returned as they are.

    Examples:
        >>> normalize_phone("0995498027")
        '593995498027'
        >>> normalize_phone("+593 99 549 8027")
        '593995498027'
    """
    digits = re.sub(r"\D", "", phone)
    if digits.startswith(country_code):
        return digits
    if digits.startswith("0"):
        digits = digits[1:]
    return country_code + digits


def _amount(cents: int) -> str:
    return f"${format_amount(cents)}"


def compose_order_message(order: Order, business_name: str) -> str:
    """Build the multi-line order summary sent to the customer."""
    lines = [
        f"  - {item.name} x{item.quantity}: {_amount(line_total_cents(item.price, item.quantity))}"
        for item in order.items
    ]
    total_cents = price_to_cents(str(order.total))

    message = f"Hola {order.customer_name}!\n"
    message += f"Soy de *{business_name}*\n\n"
    message += f"Tu pedido *#{order.order_number}* ha sido recibido:\n\n"
    message += "*Detalle:*\n"
    message += "\n".join(lines) + "\n\n"
    message += f"*Total: {_amount(total_cents)}*\n"
    if order.notes:
        message += f"\nNotas: {order.notes}\n"
    message += (
        "\nPara coordinar el envio, por favor comparte tu ubicacion de WhatsApp "
        "o escribenos tu direccion exacta.\n"
    )
    message += "Gracias por tu pedido!"
    return message


def build_whatsapp_link(
    order: Order, business_name: str, country_code: str = DEFAULT_COUNTRY_CODE
) -> str:
    """Deep link that opens a chat with the customer, message prefilled."""
    number = normalize_phone(order.customer_phone, country_code)
    text = quote(compose_order_message(order, business_name), safe="")
    return f"{WHATSAPP_BASE_URL}{number}?text={text}"
