"""
PDF processing service.

Extracts the text layer with pdfplumber and, for scanned records without
one, renders pages to PIL Images via pdf2image (poppler).
"""

import io
import logging
from typing import BinaryIO

from PIL import Image

from ..models import ParsedDocument

logger = logging.getLogger(__name__)


class PDFConversionError(Exception):
    """Raised when PDF text extraction or rendering fails."""

    pass


def is_pdf(filename: str | None, content_type: str | None) -> bool:
    """A file counts as a PDF when its name or its content type says so."""
    name = (filename or "").lower()
    kind = (content_type or "").lower()
    return name.endswith(".pdf") or "pdf" in kind


def _read_bytes(file_bytes: bytes | BinaryIO) -> bytes:
    if hasattr(file_bytes, "read"):
        return file_bytes.read()
    return file_bytes


def _check_header(pdf_bytes: bytes) -> None:
    if not pdf_bytes:
        raise PDFConversionError("Empty PDF file provided")

    # Validate PDF magic bytes
    if not pdf_bytes[:4] == b"%PDF":
        raise PDFConversionError(
            "Invalid PDF file: does not start with PDF header"
        )


class PDFService:
    """
    Service for PDF processing operations.

    Uses pdfplumber for text and pdf2image (backed by poppler) for page images.
    """

    def __init__(self, dpi: int = 150, image_format: str = "PNG"):
        """
        Initialize the PDF service.

        Args:
            dpi: Resolution for PDF to image conversion. Higher = better quality but slower.
            image_format: Output image format (PNG recommended for quality).
        """
        self.dpi = dpi
        self.image_format = image_format

    def extract_text(self, file_bytes: bytes | BinaryIO) -> tuple[str, int]:
        """
        Extract the text layer of a PDF, page by page.

        A page that fails to extract is logged and skipped; the remaining
        pages are still returned.

        Args:
            file_bytes: PDF file as bytes or file-like object.

        Returns:
            Tuple of (text, page_count). Pages are separated by newlines.

        Raises:
            PDFConversionError: If the file is not a readable PDF.
        """
        import pdfplumber

        pdf_bytes = _read_bytes(file_bytes)
        _check_header(pdf_bytes)

        page_texts: list[str] = []
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                page_count = len(pdf.pages)
                for page_num, page in enumerate(pdf.pages, start=1):
                    try:
                        text = page.extract_text() or ""
                    except Exception as e:
                        logger.warning("Error processing page %d: %s", page_num, e)
                        continue
                    page_texts.append(text)
        except Exception as e:
            logger.error("PDF text extraction failed: %s", e)
            raise PDFConversionError(f"Failed to extract text from PDF: {e}") from e

        text = "\n".join(page_texts).strip()
        logger.info(
            "Extracted %d characters from %d page(s)", len(text), page_count
        )
        return text, page_count

    def parse_upload(
        self,
        filename: str | None,
        file_bytes: bytes,
        image_fallback_pages: int = 0,
    ) -> ParsedDocument:
        """
        Extract text from one uploaded PDF without raising.

        Failures are reported in the document itself so that one bad file
        does not sink a multi-file upload. When the PDF has no text layer and
        image_fallback_pages is positive, up to that many pages are rendered
        so the model can read the scan instead.
        """
        title = filename or "attachment.pdf"
        try:
            text, page_count = self.extract_text(file_bytes)
        except PDFConversionError as e:
            logger.error("Error processing file %s: %s", title, e)
            return ParsedDocument(
                title=title,
                text=f"[Error processing file: {e}]",
                error=str(e),
            )
        document = ParsedDocument(title=title, text=text, page_count=page_count)

        if not text and image_fallback_pages > 0:
            try:
                document.images = self.render_pages(file_bytes, image_fallback_pages)
                logger.info(
                    "No text layer in %s, attached %d rendered page(s)",
                    title,
                    len(document.images),
                )
            except PDFConversionError as e:
                logger.warning("Could not render scanned pages for %s: %s", title, e)

        return document

    def convert_pdf_to_images(
        self,
        file_bytes: bytes | BinaryIO,
        first_page: int | None = None,
        last_page: int | None = None,
    ) -> list[Image.Image]:
        """
        Convert PDF pages to PIL Images.

        Args:
            file_bytes: PDF file as bytes or file-like object.
            first_page: First page to convert (1-indexed, inclusive). None for first page.
            last_page: Last page to convert (1-indexed, inclusive). None for last page.

        Returns:
            List of PIL Image objects, one per page.

        Raises:
            PDFConversionError: If conversion fails for any reason.
        """
        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import (
            PDFInfoNotInstalledError,
            PDFPageCountError,
            PDFSyntaxError,
        )

        pdf_bytes = _read_bytes(file_bytes)
        _check_header(pdf_bytes)

        try:
            logger.info(
                "Converting PDF to images (dpi=%d, pages=%s-%s)",
                self.dpi,
                first_page or "first",
                last_page or "last",
            )

            images = convert_from_bytes(
                pdf_bytes,
                dpi=self.dpi,
                fmt=self.image_format.lower(),
                first_page=first_page,
                last_page=last_page,
                thread_count=2,
            )

            logger.info("Successfully converted %d page(s)", len(images))
            return images

        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise PDFConversionError(
                "Poppler not installed. Install poppler-utils: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            ) from e

        except PDFPageCountError as e:
            logger.error("Could not get PDF page count: %s", e)
            raise PDFConversionError(
                f"Could not determine PDF page count: {e}"
            ) from e

        except PDFSyntaxError as e:
            logger.error("PDF syntax error: %s", e)
            raise PDFConversionError(f"Invalid or corrupted PDF file: {e}") from e

        except Exception as e:
            logger.exception("Unexpected error during PDF conversion")
            raise PDFConversionError(f"PDF conversion failed: {e}") from e

    def render_pages(self, file_bytes: bytes, max_pages: int) -> list[Image.Image]:
        """Render at most the first max_pages pages, for records with no text layer."""
        if max_pages < 1:
            return []
        return self.convert_pdf_to_images(file_bytes, first_page=1, last_page=max_pages)


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
