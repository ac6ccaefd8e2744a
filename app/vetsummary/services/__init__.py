"""
Services package for the veterinary records summarizer.

Contains:
- pdf_service: PDF text extraction and page rendering
- faq: FAQ derivation from categorized date-events
- ai: OpenAI integration for record extraction
"""

from .ai import AIService
from .pdf_service import PDFService

__all__ = ["PDFService", "AIService"]
