import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

import httpx
import openai

from .outcomes import AdapterError, AdapterOutcome, Failure, FailureKind, Success

logger = logging.getLogger(__name__)


def classify_exception(exc: BaseException) -> FailureKind:
    """Map an exception raised by a remote call onto a failure kind."""
    if isinstance(exc, AdapterError):
        return exc.kind
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException, openai.APITimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(exc, (httpx.HTTPStatusError, httpx.RequestError,
                        openai.APIStatusError, openai.APIConnectionError)):
        return FailureKind.HTTP_ERROR
    if isinstance(exc, (ValueError, KeyError, TypeError, IndexError)):
        return FailureKind.MALFORMED_RESPONSE
    return FailureKind.UNKNOWN


def describe_exception(name: str, exc: BaseException, timeout: float) -> str:
    if isinstance(exc, AdapterError):
        return exc.message
    if isinstance(exc, httpx.HTTPStatusError):
        return f"{name} HTTP {exc.response.status_code}"
    if isinstance(exc, asyncio.TimeoutError):
        return f"{name} timed out after {timeout:g}s"
    return str(exc) or exc.__class__.__name__


async def invoke_with_timeout(
    name: str,
    operation: Callable[[], Awaitable[Any]],
    timeout: float,
) -> AdapterOutcome:
    """
    Run `operation` with a deadline and never raise.

    On timeout the underlying task is cancelled, so a late response can never
    be merged in. Every other exception is converted into a Failure whose kind
    is decided by the exception type.
    """
    started = time.perf_counter()
    try:
        result = await asyncio.wait_for(operation(), timeout=timeout)
    except Exception as e:
        kind = classify_exception(e)
        message = describe_exception(name, e, timeout)
        elapsed = time.perf_counter() - started
        logger.warning(f"{name} failed ({kind.value}) after {elapsed:.2f}s: {message}")
        return Failure(kind=kind, message=message)

    elapsed = time.perf_counter() - started
    if isinstance(result, (Success, Failure)):
        outcome = result
    else:
        outcome = Success(value=result)
    logger.info(f"{name} settled in {elapsed:.2f}s: {outcome}")
    return outcome
