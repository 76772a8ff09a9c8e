"""Configuration singleton for OCR Studio."""

import json
import os
from pathlib import Path
from typing import Optional

from ocr_studio import budget


class Config:
    """Singleton configuration class."""

    _instance: Optional["Config"] = None
    _CONFIG_FILE_PATH = Path.home() / ".config" / "ocr-studio" / "ocr-studio.json"

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize all configuration values."""
        # API Configuration - read from environment variables with defaults
        self._api_base_url = os.environ.get(
            "OCR_API_BASE_URL", "https://api.z.ai/api/paas/v4"
        )
        self._model_name = os.environ.get("OCR_MODEL_NAME", "glm-ocr")
        self._api_key = os.environ.get("OCR_API_KEY")

        # Boundary selection: "direct" calls the OCR API, "proxy" posts to a
        # pass-through endpoint that holds the key
        self.OCR_BOUNDARY: str = os.environ.get("OCR_BOUNDARY", "direct").lower()
        self.PROXY_URL: str = os.environ.get(
            "OCR_PROXY_URL", "http://localhost:3000/api/ocr"
        )

        # Request Configuration
        self.REQUEST_TIMEOUT_SECONDS: float = 120.0
        self.VERIFY_SSL: bool = True
        self.ERROR_BODY_PREVIEW_CHARS: int = 200

        # Pipeline Configuration
        self.CHUNK_PAUSE_SECONDS: float = 0.25
        self.MAX_ACCEPTED_BYTES: int = budget.MAX_ACCEPTED_BYTES

        # Output Configuration
        self.OUTPUT_SUFFIX = ".md"
        self.DEFAULT_OUTPUT_STEM = "extracted"

        # GUI settings
        self.GUI_WINDOW_WIDTH: int = 1100
        self.GUI_WINDOW_HEIGHT: int = 720
        self.GUI_THEME: str = "dark"

    def save(self) -> None:
        """Save configuration to JSON file."""
        self._CONFIG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)

        data = {}
        for key, value in vars(self).items():
            if key.startswith("_"):
                continue
            data[key] = value

        with open(self._CONFIG_FILE_PATH, "w") as f:
            json.dump(data, f, indent=2)

    def load(self) -> None:
        """Load configuration from JSON file."""
        if not self._CONFIG_FILE_PATH.exists():
            return

        with open(self._CONFIG_FILE_PATH, "r") as f:
            data = json.load(f)

        for key, value in data.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)

    @property
    def API_BASE_URL(self) -> str:
        """Get the API base URL."""
        return self._api_base_url

    @API_BASE_URL.setter
    def API_BASE_URL(self, value: str) -> None:
        self._api_base_url = value.rstrip("/")

    @property
    def MODEL_NAME(self) -> str:
        """Get the model name."""
        return self._model_name

    @MODEL_NAME.setter
    def MODEL_NAME(self, value: str) -> None:
        self._model_name = value

    @property
    def API_KEY(self) -> Optional[str]:
        """Get the API key."""
        return self._api_key

    @API_KEY.setter
    def API_KEY(self, value: str) -> None:
        """Set the API key."""
        if not value:
            raise ValueError("API_KEY cannot be empty")
        self._api_key = value
