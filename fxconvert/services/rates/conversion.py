from __future__ import annotations

"""Conversion arithmetic over a CurrencySnapshot.

Every cross rate pivots through the snapshot's base currency:

    rate = (1 if from == base else 1 / rates[from]) * (1 if to == base else rates[to])

Functions here are pure: they never touch the cache or do I/O, so a bulk
request computes every item against the single snapshot it was handed.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Union

from fxconvert.core.errors import ErrorKind, ValidationError
from .cache_service import CurrencySnapshot


@dataclass(frozen=True)
class ConversionResult:
    from_currency: str
    to_currency: str
    amount: float
    rate: float
    result: float


@dataclass(frozen=True)
class ConversionErrorEntry:
    kind: ErrorKind
    error: str


BulkItem = Union[ConversionResult, ConversionErrorEntry]


@dataclass(frozen=True)
class BulkConversion:
    from_currency: str
    results: Dict[str, BulkItem] = field(default_factory=dict)


def parse_amount(value: Any) -> float:
    """Return ``value`` as a finite float or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number", ErrorKind.INVALID_AMOUNT)
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError:
            raise ValidationError(
                "Amount must be a number", ErrorKind.INVALID_AMOUNT
            ) from None
    else:
        raise ValidationError("Amount must be a number", ErrorKind.INVALID_AMOUNT)
    if not math.isfinite(amount):
        raise ValidationError("Amount must be a finite number", ErrorKind.INVALID_AMOUNT)
    return amount


def normalize_code(code: Any) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def _require_currency(snapshot: CurrencySnapshot, code: str, label: str = "") -> None:
    if code not in snapshot.currencies:
        msg = f"Invalid {label}currency code: {code}" if code else "Invalid currency code"
        raise ValidationError(msg, ErrorKind.INVALID_CURRENCY)


def _base_rate(snapshot: CurrencySnapshot, code: str) -> float:
    """Units of ``code`` per one unit of the snapshot base."""
    if code == snapshot.base_currency:
        return 1.0
    rate = snapshot.rates.get(code)
    if rate is None or not math.isfinite(rate) or rate <= 0:
        raise ValidationError(
            f"No exchange rate available for {code}", ErrorKind.RATE_UNAVAILABLE
        )
    return rate


def cross_rate(snapshot: CurrencySnapshot, from_code: str, to_code: str) -> float:
    if from_code == to_code:
        return 1.0
    from_to_base = 1.0 / _base_rate(snapshot, from_code)
    base_to_to = _base_rate(snapshot, to_code)
    return from_to_base * base_to_to


def convert(
    snapshot: CurrencySnapshot, from_code: Any, to_code: Any, amount: Any
) -> ConversionResult:
    value = parse_amount(amount)
    src = normalize_code(from_code)
    dst = normalize_code(to_code)
    _require_currency(snapshot, src)
    _require_currency(snapshot, dst)
    rate = cross_rate(snapshot, src, dst)
    return ConversionResult(
        from_currency=src,
        to_currency=dst,
        amount=value,
        rate=rate,
        result=value * rate,
    )


def convert_bulk(
    snapshot: CurrencySnapshot, from_code: Any, amounts: Mapping[str, Any]
) -> BulkConversion:
    """Convert one source amount map into many targets.

    An invalid source currency fails the whole call; per-target problems
    (unknown code, bad amount, missing rate) become ConversionErrorEntry
    values under that target's key.
    """
    src = normalize_code(from_code)
    _require_currency(snapshot, src, "source ")
    # validates the source side of the pivot once for all targets
    _base_rate(snapshot, src)

    results: Dict[str, BulkItem] = {}
    for target, raw_amount in amounts.items():
        try:
            results[target] = convert(snapshot, src, target, raw_amount)
        except ValidationError as e:
            results[target] = ConversionErrorEntry(kind=e.kind, error=e.message)
    return BulkConversion(from_currency=src, results=results)
