from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fxconvert.services.history import ConversionRecord


class HistoryConversionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="fromCurrency", min_length=1)
    to_currency: str = Field(..., alias="toCurrency", min_length=1)
    amount: float
    result: float
    rate: float


class HistoryAppendIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    conversion: HistoryConversionIn

    def to_record(self, user_id: str) -> ConversionRecord:
        c = self.conversion
        return ConversionRecord(
            from_currency=c.from_currency.strip().upper(),
            to_currency=c.to_currency.strip().upper(),
            amount=c.amount,
            result=c.result,
            rate=c.rate,
            user_id=user_id,
        )


class HistoryRecordOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    from_currency: str = Field(..., alias="fromCurrency")
    to_currency: str = Field(..., alias="toCurrency")
    amount: float
    result: float
    rate: float
    timestamp: datetime

    @classmethod
    def from_record(cls, rec: ConversionRecord) -> "HistoryRecordOut":
        return cls(
            user_id=rec.user_id,
            from_currency=rec.from_currency,
            to_currency=rec.to_currency,
            amount=rec.amount,
            result=rec.result,
            rate=rec.rate,
            timestamp=rec.timestamp,
        )


class HistoryResponse(BaseModel):
    success: bool = True
    history: List[HistoryRecordOut]
