"""Send one prepared file to the OCR boundary and normalize the outcome."""

import base64
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ocr_studio.config import Config
from ocr_studio.errors import BoundaryError, OcrConfigError
from ocr_studio.models.api_schemas import ErrorBody, LayoutParsingResponse, OcrResult
from ocr_studio.models.source_file import SourceFile

DEFAULT_PREVIEW_CHARS = 200

log = logging.getLogger(__name__)


def _preview(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def describe_failure(
    response: httpx.Response, label: str, preview_chars: int = DEFAULT_PREVIEW_CHARS
) -> BoundaryError:
    """Build a BoundaryError from a non-2xx response.

    Prefers a structured message from a JSON body, then the raw body, then a
    generic message for ``label``; the HTTP status is always appended.
    """
    message: Optional[str] = None
    try:
        payload = response.json()
        if isinstance(payload, dict):
            message = ErrorBody.model_validate(payload).description
    except (ValueError, ValidationError):
        pass

    if not message:
        message = _preview(response.text, preview_chars) or f"{label} failed"

    return BoundaryError(
        f"{message} (HTTP {response.status_code})", status_code=response.status_code
    )


class OcrBoundary(ABC):
    """A remote OCR endpoint that accepts one file per call."""

    def __init__(
        self,
        timeout: float = 120.0,
        verify: bool = True,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.verify = verify
        self.preview_chars = preview_chars
        self._transport = transport

    @abstractmethod
    async def _send(self, client: httpx.AsyncClient, file: SourceFile) -> httpx.Response:
        """Issue the request for ``file``."""

    @abstractmethod
    def _parse_success(self, payload: Any) -> OcrResult:
        """Turn a 2xx JSON payload into an OcrResult."""

    async def submit(self, file: SourceFile, label: str = "OCR request") -> OcrResult:
        """Submit ``file`` once. Raises BoundaryError on any failure; never retries."""
        log.debug(f"Submitting {file!r} ({label})")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, verify=self.verify, transport=self._transport
            ) as client:
                response = await self._send(client, file)
        except httpx.HTTPError as e:
            raise BoundaryError(f"{label} failed: {e}") from e

        if not response.is_success:
            error = describe_failure(response, label, self.preview_chars)
            log.warning(f"{label} rejected: {error.message}")
            raise error

        try:
            result = self._parse_success(response.json())
        except (ValueError, ValidationError) as e:
            raise BoundaryError(
                f"Malformed response from OCR service: "
                f"{_preview(response.text, self.preview_chars) or type(e).__name__} "
                f"(HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        log.debug(f"{label} returned {len(result.text)} chars (id={result.id})")
        return result


class ProxyOcrBoundary(OcrBoundary):
    """Pass-through endpoint taking a multipart ``file`` field."""

    def __init__(self, url: str, **kwargs):
        super().__init__(**kwargs)
        self.url = url

    async def _send(self, client: httpx.AsyncClient, file: SourceFile) -> httpx.Response:
        return await client.post(
            self.url, files={"file": (file.name, file.data, file.media_type)}
        )

    def _parse_success(self, payload: Any) -> OcrResult:
        return OcrResult.model_validate(payload)


class ZaiOcrBoundary(OcrBoundary):
    """Direct client for the GLM-OCR ``layout_parsing`` endpoint."""

    def __init__(
        self, base_url: str, api_key: Optional[str], model: str = "glm-ocr", **kwargs
    ):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model

    async def _send(self, client: httpx.AsyncClient, file: SourceFile) -> httpx.Response:
        if not self.api_key:
            raise OcrConfigError(
                "OCR_API_KEY environment variable is not set. "
                "Please set it with: export OCR_API_KEY='your-api-key'"
            )
        encoded = base64.b64encode(file.data).decode("ascii")
        return await client.post(
            f"{self.base_url}/layout_parsing",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"model": self.model, "file": f"data:{file.media_type};base64,{encoded}"},
        )

    def _parse_success(self, payload: Any) -> OcrResult:
        return LayoutParsingResponse.model_validate(payload).to_result()


def build_boundary(config: Optional[Config] = None) -> OcrBoundary:
    """Create the boundary selected by ``config.OCR_BOUNDARY``."""
    config = config or Config()
    options = dict(
        timeout=config.REQUEST_TIMEOUT_SECONDS,
        verify=config.VERIFY_SSL,
        preview_chars=config.ERROR_BODY_PREVIEW_CHARS,
    )
    if config.OCR_BOUNDARY == "proxy":
        return ProxyOcrBoundary(config.PROXY_URL, **options)
    if config.OCR_BOUNDARY == "direct":
        return ZaiOcrBoundary(
            config.API_BASE_URL, config.API_KEY, model=config.MODEL_NAME, **options
        )
    raise OcrConfigError(
        f"Unknown OCR_BOUNDARY {config.OCR_BOUNDARY!r}, expected 'direct' or 'proxy'"
    )
