"""
Router for record ingestion.

Handles:
- Multi-file PDF upload, text extraction and AI summarization
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ..config import Settings, get_settings
from ..models import FaqMode, ParsedDocument, VetSummary
from ..services.ai import AIService, AIServiceError, get_ai_service
from ..services.pdf_service import PDFService, get_pdf_service, is_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ingest"])


async def _parse_uploads(
    uploads: list[UploadFile],
    pdf_service: PDFService,
    image_fallback_pages: int,
) -> list[ParsedDocument]:
    """Read every upload and extract its text in worker threads, concurrently."""
    contents: list[tuple[str | None, bytes]] = []
    for upload in uploads:
        try:
            contents.append((upload.filename, await upload.read()))
        finally:
            await upload.close()

    return list(
        await asyncio.gather(
            *(
                run_in_threadpool(
                    pdf_service.parse_upload, filename, data, image_fallback_pages
                )
                for filename, data in contents
            )
        )
    )


@router.post("/ingest", response_model=VetSummary)
async def ingest(
    request: Request,
    files: Annotated[
        list[UploadFile] | None, File(description="Veterinary PDF records")
    ] = None,
    faq_mode: Annotated[
        FaqMode,
        Query(description="Derive FAQ answers from categorized dates, or let the model answer them"),
    ] = FaqMode.DERIVED,
    ai_service: AIService = Depends(get_ai_service),
    pdf_service: PDFService = Depends(get_pdf_service),
    settings: Settings = Depends(get_settings),
) -> VetSummary:
    """
    Summarize uploaded veterinary PDFs.

    Non-PDF uploads are ignored. A PDF whose text cannot be extracted is
    still sent along as an error marker and reported in the warnings.
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Expected multipart/form-data",
        )

    uploads = files or []
    pdf_uploads = [f for f in uploads if is_pdf(f.filename, f.content_type)]
    skipped = len(uploads) - len(pdf_uploads)
    if skipped:
        logger.info("Ignoring %d non-PDF upload(s)", skipped)

    if not pdf_uploads:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No PDF files uploaded",
        )

    try:
        image_fallback_pages = (
            settings.image_fallback_max_pages if settings.image_fallback_enabled else 0
        )
        documents = await _parse_uploads(pdf_uploads, pdf_service, image_fallback_pages)
        logger.info(
            "Parsed %d PDF(s): %s",
            len(documents),
            ", ".join(f"{d.title} ({len(d.text)} chars)" for d in documents),
        )

        try:
            summary = await ai_service.summarize(documents, faq_mode)
        except AIServiceError as e:
            logger.error("AI summarization failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"AI service error: {e}",
            ) from e

        if skipped:
            summary.warnings.append(f"Ignored {skipped} non-PDF file(s)")
        return summary

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error processing upload")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal error: {e}",
        ) from e
