"""Tests for the HTTP report service."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from flowaudit.api_utils import APIError
from flowaudit.config import FlowAuditConfig
from flowaudit.prompts import AnalysisOptions
from flowaudit.service import ResponsesReportService

IMAGES = ["data:image/png;base64,AAAA", "data:image/png;base64,BBBB"]


@pytest.fixture
def config() -> FlowAuditConfig:
    """Basic config with API key."""
    cfg = FlowAuditConfig()
    cfg.api_key = "test-api-key"
    cfg.max_retries = 0
    return cfg


class TestBuildPayload:
    def test_responses_payload(self, config: FlowAuditConfig) -> None:
        service = ResponsesReportService(config)

        payload = service.build_payload("Signup", IMAGES, ["a", "b"], AnalysisOptions())

        (message,) = payload["input"]
        assert payload["model"] == config.model
        assert message["content"][0]["type"] == "input_text"
        assert [c["image_url"] for c in message["content"][1:]] == IMAGES
        assert all(c["detail"] == "high" for c in message["content"][1:])

    def test_chat_completions_payload(self, config: FlowAuditConfig) -> None:
        config.report_endpoint = "https://api.example.com/v1/chat/completions"
        service = ResponsesReportService(config)

        payload = service.build_payload("Signup", IMAGES, ["a", "b"], AnalysisOptions())

        content = payload["messages"][0]["content"]
        assert content[0]["type"] == "text"
        assert [c["image_url"]["url"] for c in content[1:]] == IMAGES


class TestGenerate:
    """Tests for the report request."""

    def test_returns_report_text(self, config: FlowAuditConfig) -> None:
        with patch("flowaudit.service.httpx.Client") as mock_client:
            mock_response = MagicMock()
            mock_response.status_code = 200
            mock_response.json.return_value = {"output_text": "# WCAG\nAccessibility Score: 70"}
            post = mock_client.return_value.__enter__.return_value.post
            post.return_value = mock_response

            text = ResponsesReportService(config).generate(
                "Signup", IMAGES, ["a", "b"], AnalysisOptions()
            )

        assert text == "# WCAG\nAccessibility Score: 70"
        args, kwargs = post.call_args
        assert args[0] == config.report_endpoint
        assert kwargs["headers"]["Authorization"] == "Bearer test-api-key"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(APIError, match="API key"):
            ResponsesReportService(FlowAuditConfig()).generate(
                "Signup", IMAGES, [], AnalysisOptions()
            )

    def test_http_error_becomes_api_error(self, config: FlowAuditConfig) -> None:
        request = httpx.Request("POST", config.report_endpoint)
        response = httpx.Response(401, request=request)

        with patch("flowaudit.service.httpx.Client") as mock_client:
            mock_response = MagicMock()
            mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
                "unauthorized", request=request, response=response
            )
            mock_client.return_value.__enter__.return_value.post.return_value = mock_response

            with pytest.raises(APIError) as exc_info:
                ResponsesReportService(config).generate("Signup", IMAGES, [], AnalysisOptions())

        assert exc_info.value.status_code == 401
