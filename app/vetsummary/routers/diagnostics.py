"""
Router for diagnostics endpoints.

Handles:
- Connectivity check against the hosted model
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..models import ConnectivityTestResponse
from ..services.ai import AIService, AIServiceError, get_ai_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["diagnostics"])


@router.get("/test", response_model=ConnectivityTestResponse)
async def test_api_key(
    ai_service: AIService = Depends(get_ai_service),
):
    """
    Check that the configured API key can reach the first model.

    Returns 500 with the error message when the round trip fails.
    """
    logger.info("Testing API key...")
    try:
        reply, model_used = await ai_service.test_connection()
    except AIServiceError as e:
        logger.error("API test failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": str(e),
                "details": "Check server logs for full error details",
            },
        )

    return ConnectivityTestResponse(
        success=True,
        message="API key is working",
        response=reply,
        model_used=model_used,
    )
