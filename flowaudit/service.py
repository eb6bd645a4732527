"""Report generation service: images + descriptions in, report text out."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
from rich.console import Console

from .api_utils import APIError, extract_response_text, is_chat_completions_endpoint, retry_request
from .config import FlowAuditConfig
from .prompts import AnalysisOptions, build_audit_prompt

console = Console()


class ReportService(Protocol):
    """Anything that turns a flow's images and descriptions into report text."""

    def generate(
        self,
        flow_name: str,
        images: list[str],
        descriptions: list[str],
        options: AnalysisOptions,
    ) -> str: ...


class ResponsesReportService:
    """Report service backed by an OpenAI-compatible HTTP API."""

    def __init__(self, config: FlowAuditConfig) -> None:
        self.config = config

    def build_payload(
        self,
        flow_name: str,
        images: list[str],
        descriptions: list[str],
        options: AnalysisOptions,
    ) -> dict[str, Any]:
        """Request body for either the Responses or Chat Completions API."""
        prompt = build_audit_prompt(flow_name, descriptions, options)
        endpoint = self.config.report_endpoint

        if is_chat_completions_endpoint(endpoint):
            content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
            content.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
            return {
                "model": self.config.model,
                "messages": [{"role": "user", "content": content}],
            }

        content_responses: list[dict[str, Any]] = [{"type": "input_text", "text": prompt}]
        content_responses.extend(
            {"type": "input_image", "image_url": url, "detail": "high"} for url in images
        )
        return {
            "model": self.config.model,
            "input": [{"role": "user", "content": content_responses}],
        }

    def generate(
        self,
        flow_name: str,
        images: list[str],
        descriptions: list[str],
        options: AnalysisOptions,
    ) -> str:
        if not self.config.api_key:
            raise APIError(
                "API key not configured. Run: flowaudit config --set-key KEY"
            )

        payload = self.build_payload(flow_name, images, descriptions, options)

        def do_report_request() -> httpx.Response:
            with httpx.Client(timeout=self.config.request_timeout) as client:
                response = client.post(
                    self.config.report_endpoint,
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                response.raise_for_status()
                return response

        try:
            response = retry_request(
                do_report_request,
                max_retries=self.config.max_retries,
                operation_name=f"Audit report ({flow_name})",
            )
        except httpx.HTTPStatusError as e:
            raise APIError(
                f"Report request failed: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise APIError(f"Report request failed: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise APIError(
                f"Failed to parse API response: {e}", status_code=response.status_code
            ) from e

        text = extract_response_text(result, self.config.report_endpoint)
        if not text:
            console.print("[yellow]Report service returned no text[/]")
        return text
