"""Interface to the language-model collaborator."""

import base64
from typing import Protocol

RESPONSE_LANGUAGES = {"en": "English", "zh": "Simplified Chinese"}


class LlmClient(Protocol):
    """Interface for structured and free-text LLM calls."""

    async def extract_structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return data conforming to ``schema``."""

    async def generate_text(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
    ) -> str:
        """Return free-text output for a prompt."""


def response_language(locale: str) -> str:
    """Language name the model should answer in."""
    return RESPONSE_LANGUAGES.get(locale, RESPONSE_LANGUAGES["en"])


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
