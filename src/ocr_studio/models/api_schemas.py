"""Response schemas for the OCR boundary."""

from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, Field


class OcrResult(BaseModel):
    """Successful proxy response"""

    text: str = Field(default="", description="Extracted Markdown text")
    id: Optional[str] = Field(default=None, description="Opaque request identifier")
    usage: Optional[Dict[str, Any]] = Field(
        default=None, description="Token usage reported by the OCR service"
    )


class LayoutParsingResponse(BaseModel):
    """Successful response of the upstream layout_parsing endpoint"""

    md_results: Optional[str] = None
    id: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None

    def to_result(self) -> OcrResult:
        return OcrResult(text=self.md_results or "", id=self.id, usage=self.usage)


class ErrorBody(BaseModel):
    """Failure body. The proxy sends ``{"error": "..."}``, the upstream API
    sends ``{"error": {"code": ..., "message": "..."}}`` or ``{"message": "..."}``."""

    error: Optional[Union[str, Dict[str, Any]]] = None
    message: Optional[str] = None

    @property
    def description(self) -> Optional[str]:
        if isinstance(self.error, dict):
            nested = self.error.get("message")
            if nested:
                return str(nested)
        elif self.error:
            return self.error
        return self.message or None
