from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Maximum price: 9,999,999.99
# This prevents nonsensical prices from a mistyped field
MAX_PRICE = Decimal("9999999.99")
CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class ValidationError(ValueError):
    """400-level input problem (bad field value, malformed snapshot)."""


class PreconditionError(ValueError):
    """409-level refusal: the current state does not allow the operation. Nothing changed."""


class PersistenceError(RuntimeError):
    """
    Durable write failed after the in-memory change was applied.

    Memory stays valid for the session; the divergence must be reported.
    applied=False marks a failure that stopped the operation before it
    touched memory (factory reset clears disk first).
    """

    def __init__(self, message: str = "", *, applied: bool = True):
        super().__init__(message)
        self.applied = applied


def to_money(value: Any, *, field: str = "amount", default: Decimal | None = None) -> Decimal:
    """
    Coerce user/JSON input to a cent-precision Decimal.

    Accepts Decimal, int, float and strings ("12,50", "12.50", "$12.50").
    None / "" -> default, or ValidationError when no default is given.
    """
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        # str() keeps the short repr, Decimal(float) would keep binary noise
        d = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace("$", "").replace("€", "").replace(",", ".")
        try:
            d = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not d.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_json(value: Decimal) -> float:
    return float(value)


def to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def to_bool(value: Any, *, field: str = "value", default: bool | None = None) -> bool:
    if value is None:
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"true", "1", "yes", "on"}:
            return True
        if s in {"false", "0", "no", "off"}:
            return False
    raise ValidationError(f"{field}: expected boolean")


def enforce_rules_price(price: Decimal, *, field: str = "price") -> Decimal:
    """
    Business rules for catalog prices. Keep these small and centralized.
    """
    if price < 0:
        raise ValidationError(f"{field} must be >= 0")
    if price > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")
    return price


def enforce_rules_amount(amount: Decimal, *, field: str = "amount") -> Decimal:
    # Ledger amounts are magnitudes; the kind decides the sign
    if amount <= 0:
        raise ValidationError(f"{field} must be > 0")
    return amount
