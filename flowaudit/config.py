"""Configuration management with embedded defaults."""

import os
from dataclasses import dataclass
from pathlib import Path

# Default OpenAI-compatible configuration
DEFAULT_API_BASE = "https://api.openai.com"
DEFAULT_REPORT_ENDPOINT = f"{DEFAULT_API_BASE}/v1/responses"

DEFAULT_MODEL = "gpt-4.1"

# Compositing waits this long (seconds) for an image to decode
DEFAULT_COMPOSE_TIMEOUT = 5.0

# Annotation defaults
DEFAULT_ANNOTATION_COLOR = "#ef4444"
DEFAULT_THICKNESS = 3

# Config file locations (checked in order)
CONFIG_PATHS = [
    Path.cwd() / ".env",  # Local project .env first
    Path.home() / ".config" / "flowaudit" / "config.env",
    Path.home() / ".flowaudit.env",
    Path("/etc/flowaudit/config.env"),
]


@dataclass
class FlowAuditConfig:
    """flowaudit configuration."""

    # API Configuration
    api_key: str = ""
    api_base: str = DEFAULT_API_BASE

    # Endpoint
    report_endpoint: str = DEFAULT_REPORT_ENDPOINT

    # Model
    model: str = DEFAULT_MODEL

    # Processing options
    compose_timeout: float = DEFAULT_COMPOSE_TIMEOUT
    categories_file: str = ""
    request_timeout: float = 180.0
    max_retries: int = 3

    @classmethod
    def load(cls) -> "FlowAuditConfig":
        """Load config from environment and config files."""
        config = cls()

        for config_path in CONFIG_PATHS:
            if config_path.exists():
                config._load_from_file(config_path)
                break

        # Environment variables override config files
        config._load_from_env()

        return config

    def _load_from_file(self, path: Path) -> None:
        """Load configuration from .env file."""
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    self._set_from_key(key, value)

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        env_keys = [
            "OPENAI_API_KEY",
            "FLOWAUDIT_API_KEY",
            "FLOWAUDIT_API_BASE",
            "FLOWAUDIT_REPORT_ENDPOINT",
            "FLOWAUDIT_MODEL",
            "FLOWAUDIT_COMPOSE_TIMEOUT",
            "FLOWAUDIT_CATEGORIES",
        ]

        for env_key in env_keys:
            value = os.environ.get(env_key)
            if value:
                self._set_from_key(env_key, value)

    def _set_from_key(self, key: str, value: str) -> None:
        """Set attribute from key-value pair."""
        key_lower = key.lower()

        if "api_key" in key_lower:
            self.api_key = value
        elif "api_base" in key_lower:
            # Normalize api_base - remove trailing paths like /v1/responses, /v1, etc.
            normalized = value.rstrip("/")
            for suffix in ["/v1/responses", "/v1/chat/completions", "/v1"]:
                if normalized.endswith(suffix):
                    normalized = normalized[: -len(suffix)]
                    break
            # Only derive the endpoint if it was not set explicitly
            if self.report_endpoint == f"{self.api_base}/v1/responses":
                self.report_endpoint = f"{normalized}/v1/responses"
            self.api_base = normalized
        elif "report_endpoint" in key_lower:
            self.report_endpoint = value
        elif "compose_timeout" in key_lower:
            try:
                self.compose_timeout = float(value)
            except ValueError:
                pass
        elif "categories" in key_lower:
            self.categories_file = value
        elif "model" in key_lower:
            self.model = value

    def save_default_config(self) -> Path:
        """Save default config to user's config directory."""
        config_dir = Path.home() / ".config" / "flowaudit"
        config_dir.mkdir(parents=True, exist_ok=True)
        config_path = config_dir / "config.env"

        content = f"""# flowaudit configuration

# API Key (required for `flowaudit audit`)
FLOWAUDIT_API_KEY={self.api_key}

# API Base URL
FLOWAUDIT_API_BASE={self.api_base}

# Model
FLOWAUDIT_MODEL={self.model}

# Compositing
FLOWAUDIT_COMPOSE_TIMEOUT={self.compose_timeout}
"""

        with open(config_path, "w") as f:
            f.write(content)

        return config_path
