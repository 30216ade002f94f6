"""Pydantic request/response models for the currency converter API."""

from .constants import DEFAULT_BASE_CURRENCY, CURRENCY_CODE_PATTERN  # re-export
from .conversion import (
    BulkConvertIn,
    BulkConvertResponse,
    ConversionErrorOut,
    ConversionOut,
    ConvertResponse,
)
from .history import (
    HistoryAppendIn,
    HistoryConversionIn,
    HistoryRecordOut,
    HistoryResponse,
)

__all__ = [
    "DEFAULT_BASE_CURRENCY",
    "CURRENCY_CODE_PATTERN",
    "BulkConvertIn",
    "BulkConvertResponse",
    "ConversionErrorOut",
    "ConversionOut",
    "ConvertResponse",
    "HistoryAppendIn",
    "HistoryConversionIn",
    "HistoryRecordOut",
    "HistoryResponse",
]
