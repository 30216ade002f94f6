from __future__ import annotations
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fxconvert.services.rates.conversion import (
    BulkConversion,
    ConversionErrorEntry,
    ConversionResult,
)


class ConversionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    amount: float
    rate: float
    result: float

    @classmethod
    def from_result(cls, res: ConversionResult) -> "ConversionOut":
        return cls(
            from_currency=res.from_currency,
            to_currency=res.to_currency,
            amount=res.amount,
            rate=res.rate,
            result=res.result,
        )


class ConversionErrorOut(BaseModel):
    error: str
    kind: str

    @classmethod
    def from_entry(cls, entry: ConversionErrorEntry) -> "ConversionErrorOut":
        return cls(error=entry.error, kind=entry.kind.value)


class ConvertResponse(BaseModel):
    success: bool = True
    conversion: ConversionOut


class BulkConvertIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(
        ..., alias="from", min_length=1, description="Source currency code"
    )
    # values stay untyped so one bad amount does not reject the whole body
    amounts: Dict[str, Any] = Field(
        ..., description="Target currency code -> amount in the source currency"
    )

    @field_validator("from_currency")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("source currency must not be blank")
        return v


class BulkConvertResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    from_currency: str = Field(..., alias="from")
    results: Dict[str, Union[ConversionOut, ConversionErrorOut]]

    @classmethod
    def from_bulk(cls, bulk: BulkConversion) -> "BulkConvertResponse":
        results: Dict[str, Union[ConversionOut, ConversionErrorOut]] = {}
        for code, item in bulk.results.items():
            if isinstance(item, ConversionErrorEntry):
                results[code] = ConversionErrorOut.from_entry(item)
            else:
                results[code] = ConversionOut.from_result(item)
        return cls(from_currency=bulk.from_currency, results=results)
