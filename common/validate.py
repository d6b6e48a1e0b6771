"""
Repair Desk — Operator Input Validation

Syntactic checks the console applies before anything reaches the
workflow engine. Each parse_* function returns the cleaned value or
raises InvalidInput with a message fit to show the operator.
"""

from __future__ import annotations

import re
from datetime import date

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")
PHONE_PATTERN = re.compile(r"^\d{8}$")

YES = "S"
NO = "N"


class InvalidInput(ValueError):
    """Operator input that fails a syntactic check."""
    pass


def parse_text(value: str) -> str:
    text = value.strip()
    if not text:
        raise InvalidInput("❌ Este campo no puede estar vacío.")
    return text


def parse_email(value: str) -> str:
    email = value.strip()
    if not EMAIL_PATTERN.match(email):
        raise InvalidInput("❌ Formato de correo electrónico inválido.")
    return email


def parse_phone(value: str) -> str:
    phone = value.strip()
    # \d also matches non-ASCII digits
    if not PHONE_PATTERN.match(phone) or not phone.isascii():
        raise InvalidInput("❌ El teléfono debe tener exactamente 8 dígitos numéricos.")
    return phone


def parse_date(value: str) -> date:
    text = value.strip()
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", text):
        raise InvalidInput("❌ Formato de fecha incorrecto. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidInput("❌ Formato de fecha incorrecto. Use YYYY-MM-DD.")


def parse_yes_no(value: str) -> bool:
    answer = value.strip().upper()
    if answer == YES:
        return True
    if answer == NO:
        return False
    raise InvalidInput("❌ Respuesta inválida. Ingrese S o N: ")


def parse_menu_choice(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise InvalidInput("❌ Debe ingresar un número válido.")
