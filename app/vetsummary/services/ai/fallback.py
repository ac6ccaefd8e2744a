"""
Linear model fallback.

Each configured model is tried once, in order, until one returns a usable
answer. There is no backoff or retry of the same model.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from openai import OpenAIError

from .exceptions import AIServiceError, AllModelsFailedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_fallback(
    models: list[str],
    call: Callable[[str], Awaitable[T]],
) -> tuple[T, str]:
    """
    Invoke call(model) for each model until one succeeds.

    Args:
        models: Model names in order of preference.
        call: Coroutine function performing one request against one model.

    Returns:
        Tuple of (result, model name that produced it).

    Raises:
        AIServiceError: If no models are configured.
        AllModelsFailedError: If every model raised.
    """
    if not models:
        raise AIServiceError("No models configured")

    attempts: list[tuple[str, Exception]] = []
    for model in models:
        try:
            result = await call(model)
        except (OpenAIError, AIServiceError) as e:
            logger.warning("Model %s failed: %s", model, e)
            attempts.append((model, e))
            continue

        if attempts:
            logger.info(
                "Model %s succeeded after %d failed attempt(s)", model, len(attempts)
            )
        return result, model

    raise AllModelsFailedError(attempts)
