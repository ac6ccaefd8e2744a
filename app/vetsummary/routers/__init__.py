"""
Routers package for FastAPI endpoints.

Organized by domain:
- ingest: PDF upload and summarization
- diagnostics: Connectivity checks against the hosted model
"""

from . import diagnostics, ingest

__all__ = ["diagnostics", "ingest"]
