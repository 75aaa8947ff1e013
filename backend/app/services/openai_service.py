import asyncio
import logging
import time
from typing import Any

from openai import AsyncOpenAI

from app.errors import GatewayError
from app.system_metrics import increment_metric, observe_gateway_latency_ms
from core.config import CHAT_MODEL, CHAT_TIMEOUT_SEC, GATEWAY_RETRIES, OPENAI_API_KEY

logger = logging.getLogger("app.services.openai_service")

client = AsyncOpenAI(api_key=OPENAI_API_KEY or "missing-key", max_retries=0)

QUESTION_SAMPLING = {
    "temperature": 0.8,
    "max_tokens": 120,
    "presence_penalty": 0.4,
    "frequency_penalty": 0.6,
}


async def _create_completion_with_retry(
    messages: list[dict],
    model: str,
    timeout_sec: float,
    retries: int,
    **sampling: Any,
):
    last_error: Exception | None = None
    for attempt in range(max(1, retries + 1)):
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=model,
                    messages=messages,
                    **sampling,
                ),
                timeout=timeout_sec,
            )
            observe_gateway_latency_ms((time.perf_counter() - started) * 1000.0)
            return response
        except asyncio.TimeoutError as exc:
            last_error = exc
            logger.warning("LLM timeout | model=%s attempt=%s", model, attempt + 1)
        except Exception as exc:
            last_error = exc
            logger.warning("LLM failure | model=%s attempt=%s err=%s", model, attempt + 1, exc)

        if attempt < retries:
            await asyncio.sleep(0.4 * (attempt + 1))

    increment_metric("gateway_failures")
    if isinstance(last_error, asyncio.TimeoutError):
        raise GatewayError("Chat API", f"timed out after {timeout_sec:.0f}s") from last_error
    raise GatewayError("Chat API", str(last_error or "request failed")) from last_error


async def create_chat_completion(
    messages: list[dict],
    model: str = CHAT_MODEL,
    timeout_sec: float = CHAT_TIMEOUT_SEC,
    retries: int = GATEWAY_RETRIES,
    **sampling: Any,
) -> dict:
    """Forward a role-tagged message list and return the completion as plain JSON."""
    response = await _create_completion_with_retry(messages, model, timeout_sec, retries, **sampling)
    if hasattr(response, "model_dump"):
        return response.model_dump(exclude_none=True)
    return dict(response)


async def complete_text(
    messages: list[dict],
    model: str = CHAT_MODEL,
    timeout_sec: float = CHAT_TIMEOUT_SEC,
    retries: int = GATEWAY_RETRIES,
    **sampling: Any,
) -> str:
    response = await _create_completion_with_retry(messages, model, timeout_sec, retries, **sampling)
    try:
        message = response.choices[0].message.content
    except (AttributeError, IndexError) as exc:
        increment_metric("gateway_failures")
        raise GatewayError("Chat API", "response carried no choices") from exc
    return str(message or "")
