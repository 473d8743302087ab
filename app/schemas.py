from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    ok: bool = True
    rate: float


class ConvertResponse(BaseModel):
    rate: float
    amount: float
    from_currency: str = Field(alias="from")
    bgn: float
    eur: float

    model_config = ConfigDict(populate_by_name=True)


class CandidateOut(BaseModel):
    value: float
    normalized: str


class OCRResponse(BaseModel):
    ok: bool = True
    rate: float
    confidence: float | None
    best_amount: float | None = Field(alias="bestAmount")
    candidates: list[CandidateOut]
    raw_text: str = Field(alias="rawText")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
