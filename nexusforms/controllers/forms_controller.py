"""
Forms Controller – API route definitions.

Defines endpoints for health check, PDF download, validation,
submission to the email relay, and signature rasterisation.
"""

from __future__ import annotations

import io
import logging
import os
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from nexusforms.models.schemas import FieldError, FormRecord, SignatureStrokes
from nexusforms.repository.asset_repository import AssetRepository
from nexusforms.services.i18n_service import Translator, get_translator
from nexusforms.services.pdf_service import PdfService, download_filename, to_base64
from nexusforms.services.relay_service import RelayClient, build_relay_request
from nexusforms.services.signature_service import render_strokes, render_upload
from nexusforms.services.validation_service import ValidationService, validate_relay_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["forms"])

# One body parameter for every form type, selected by `form_type`.
FormBody = Annotated[FormRecord, Body(discriminator="form_type")]


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------

def _get_asset_repo() -> AssetRepository:
    return AssetRepository()


def _get_pdf_service(assets: AssetRepository = Depends(_get_asset_repo)) -> PdfService:
    return PdfService(assets=assets)


def _get_validation_service() -> ValidationService:
    return ValidationService()


def _get_relay_client() -> RelayClient:
    return RelayClient()


def _get_translator(lang: Optional[str] = Query(None, description="Label language: en or es")) -> Translator:
    return get_translator(lang)


def _export_scale() -> float:
    return float(os.getenv("SIGNATURE_EXPORT_SCALE", "3"))


def _unprocessable(errors: list[FieldError]) -> HTTPException:
    return HTTPException(status_code=422, detail=[e.model_dump() for e in errors])


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health")
async def health():
    """Health-check endpoint."""
    return {"status": "ok", "service": "Nexus Forms Engine"}


@router.post("/pdf")
async def render_pdf(
    data: FormBody,
    pdf_svc: PdfService = Depends(_get_pdf_service),
    translate: Translator = Depends(_get_translator),
):
    """Render the form as a PDF download (``{form-type}-{date}.pdf``)."""
    try:
        pdf_bytes, doc = pdf_svc.render_bytes(data, translate)
    except Exception as e:
        logger.exception("PDF rendering failed")
        raise HTTPException(status_code=500, detail=f"PDF rendering failed: {str(e)}")

    filename = download_filename(data.form_type)
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "X-Render-Warnings": str(len(doc.warnings)),
        },
    )


@router.post("/validate")
async def validate(
    data: FormBody,
    validator: ValidationService = Depends(_get_validation_service),
):
    """Check the form without rendering; returns every field error."""
    errors = validator.validate(data)
    return {"valid": not errors, "errors": [e.model_dump() for e in errors]}


@router.post("/submit")
async def submit(
    data: FormBody,
    validator: ValidationService = Depends(_get_validation_service),
    pdf_svc: PdfService = Depends(_get_pdf_service),
    relay: RelayClient = Depends(_get_relay_client),
    translate: Translator = Depends(_get_translator),
):
    """
    Validate → render → post to the email relay.

    The PDF is returned in every outcome so the user can still download
    it when emailing failed. A failed admin copy answers 502; a failed
    customer copy is reported inside ``result.secondary``.
    """
    errors = validator.validate(data)
    if errors:
        raise _unprocessable(errors)

    try:
        pdf_bytes, doc = pdf_svc.render_bytes(data, translate)
    except Exception as e:
        logger.exception("PDF rendering failed")
        raise HTTPException(status_code=500, detail=f"PDF rendering failed: {str(e)}")

    pdf_b64 = to_base64(pdf_bytes)
    request = build_relay_request(data, pdf_b64)
    errors = validate_relay_request(request)
    if errors:
        raise _unprocessable(errors)

    result = await relay.send(request)
    body = {
        "result": {
            "primary": result.primary.model_dump(),
            "secondary": result.secondary.model_dump(),
            "partial_failure": result.partial_failure,
        },
        "filename": download_filename(data.form_type),
        "pdfData": pdf_b64,
        "warnings": [w.model_dump() for w in doc.warnings],
    }
    return JSONResponse(status_code=200 if result.primary.ok else 502, content=body)


@router.post("/signature")
async def signature_from_strokes(strokes: SignatureStrokes):
    """Rasterise freehand strokes into a PNG data URI (``null`` when there is no ink)."""
    try:
        data_url = render_strokes(
            strokes.strokes,
            width=strokes.width,
            height=strokes.height,
            device_pixel_ratio=strokes.device_pixel_ratio,
            scale=strokes.scale if strokes.scale is not None else _export_scale(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"dataUrl": data_url}


@router.post("/signature/upload")
async def signature_from_upload(
    file: UploadFile = File(...),
    width: int = Form(600),
    height: int = Form(200),
    scale: Optional[float] = Form(None),
    repo: AssetRepository = Depends(_get_asset_repo),
):
    """Stretch an uploaded signature image onto the pad box and return it as PNG."""
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Please upload an image file (PNG, JPG)")
    raw = await repo.read_uploaded_file(file)
    try:
        data_url = render_upload(
            raw, width=width, height=height,
            scale=scale if scale is not None else _export_scale(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"dataUrl": data_url}
