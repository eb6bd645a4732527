"""HTTP helpers for the report service: retry with backoff and response parsing."""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from rich.console import Console

console = Console()

T = TypeVar("T")

# Status codes that should trigger a retry
RETRIABLE_STATUS_CODES = {
    408,  # Request Timeout
    429,  # Too Many Requests (rate limit)
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
}


class APIError(Exception):
    """API request error with details."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def is_retriable_error(error: Exception) -> bool:
    """Check if an error should trigger a retry."""
    if isinstance(error, (httpx.TimeoutException, httpx.ConnectError)):
        return True

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRIABLE_STATUS_CODES

    return False


def retry_request(
    fn: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    operation_name: str = "API request",
) -> T:
    """
    Execute a function with exponential backoff retry.

    Args:
        fn: Function to execute (should raise httpx exceptions on failure)
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries
        operation_name: Name of operation for logging

    Returns:
        Result of fn()

    Raises:
        The last exception if all retries fail, or the first non-retriable one
    """
    for attempt in range(max_retries + 1):
        try:
            return fn()
        except Exception as e:
            if not is_retriable_error(e):
                raise

            if attempt >= max_retries:
                console.print(f"[red]{operation_name} failed after {max_retries + 1} attempts[/]")
                raise

            # Exponential backoff with jitter
            delay = min(base_delay * (2**attempt), max_delay)
            delay = delay * (0.5 + random.random())  # noqa: S311

            console.print(
                f"[yellow]{operation_name} failed (attempt {attempt + 1}/{max_retries + 1}), "
                f"retrying in {delay:.1f}s...[/]"
            )
            console.print(f"[dim]  Error: {e}[/]")

            time.sleep(delay)

    raise RuntimeError("Unexpected retry loop exit")


def is_chat_completions_endpoint(endpoint: str) -> bool:
    return endpoint.rstrip("/").endswith("/chat/completions")


def extract_response_text(result: dict[str, Any], endpoint: str = "") -> str:
    """
    Pull the generated text out of an API response body.

    Handles the Responses API (``output`` list of message/output_text items,
    reasoning blocks skipped) and Chat Completions (``choices``).
    """
    if is_chat_completions_endpoint(endpoint) or "choices" in result:
        choices = result.get("choices") or []
        if choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            content = message.get("content", "")
            return content if isinstance(content, str) else ""
        return ""

    if isinstance(result.get("output_text"), str):
        return result["output_text"]

    content = ""
    output_list = result.get("output", [])
    if not isinstance(output_list, list):
        return content
    for item in output_list:
        if not isinstance(item, dict):
            continue
        item_type = item.get("type", "")
        if item_type == "message":
            for part in item.get("content", []) or []:
                if isinstance(part, dict) and part.get("type") in ("output_text", "text"):
                    text = part.get("text", "")
                    if isinstance(text, str):
                        content += text
        elif item_type in ("output_text", "text"):
            text = item.get("text", "")
            if isinstance(text, str):
                content += text
    return content
