from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile

from app.conversion.converter import convert, parse_amount
from app.core.config import Settings
from app.core.errors import InvalidInput, PayloadTooLarge
from app.pipeline.pipeline import ExtractionPipeline
from app.schemas import CandidateOut, ConvertResponse, HealthResponse, OCRResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> ExtractionPipeline:
    return request.app.state.pipeline


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(ok=True, rate=settings.exchange_rate)


@router.get("/convert", response_model=ConvertResponse, response_model_by_alias=True)
async def convert_amount(
    amount: str | None = Query(default=None),
    from_currency: str = Query(default="BGN", alias="from"),
    settings: Settings = Depends(get_settings),
) -> ConvertResponse:
    result = convert(parse_amount(amount), from_currency, rate=settings.exchange_rate)
    return ConvertResponse(
        rate=result.rate,
        amount=result.amount,
        from_currency=result.from_currency,
        bgn=result.bgn,
        eur=result.eur,
    )


@router.post("/ocr", response_model=OCRResponse, response_model_by_alias=True)
async def scan_price(
    image: UploadFile | None = File(default=None),
    settings: Settings = Depends(get_settings),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> OCRResponse:
    if image is None:
        raise InvalidInput("Missing image file (field name: image)")

    image_bytes = await image.read(settings.max_upload_bytes + 1)
    if len(image_bytes) > settings.max_upload_bytes:
        raise PayloadTooLarge(f"Image exceeds {settings.max_upload_bytes} bytes")

    logger.info(
        "price_scan_received",
        extra={
            "upload_filename": image.filename,
            "content_type": image.content_type,
            "size_bytes": len(image_bytes),
        },
    )

    result = await pipeline.process_image(image_bytes)
    best = result.best

    return OCRResponse(
        ok=True,
        rate=settings.exchange_rate,
        confidence=result.confidence,
        best_amount=float(best.value) if best else None,
        candidates=[CandidateOut(value=float(c.value), normalized=c.normalized) for c in result.candidates],
        raw_text=result.text,
    )
