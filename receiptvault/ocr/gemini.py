"""Gemini API OCR backend for receipt transcription."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from . import TRANSCRIBE_PROMPT, OCRBackend, OCRResult, parse_transcription


class GeminiOCRBackend(OCRBackend):
    """Transcribe receipts using Google Gemini's vision capability."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def recognize(self, image_path: str) -> OCRResult:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install 'receiptvault[gemini]'"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        media_type = mimetypes.guess_type(image_path)[0] or "image/jpeg"
        parts: list = [
            {"mime_type": media_type, "data": Path(image_path).read_bytes()},
            TRANSCRIBE_PROMPT,
        ]

        response = await model.generate_content_async(parts)
        return parse_transcription(response.text)
