"""OCR backend base class, result types, and factory."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import VaultConfig


@dataclass
class OCRBlock:
    text: str
    confidence: float | None = None  # 0.0〜1.0, None if not reported


@dataclass
class OCRPage:
    blocks: list[OCRBlock] = field(default_factory=list)


@dataclass
class OCRResult:
    text: str
    pages: list[OCRPage] = field(default_factory=list)


TRANSCRIBE_PROMPT = """\
This image is a photographed retail receipt from Lebanon. It may mix English,
French and Arabic text, and amounts in LBP (L.L.) or USD.

Transcribe ALL text exactly as printed, line by line, top to bottom. Do not
translate, correct, or reorder anything.

Return only this JSON (no other text):
{
  "blocks": [
    {"text": "one printed line or block", "confidence": 0.0〜1.0}
  ]
}

Use confidence 0.8〜1.0 for clearly legible text, 0.5〜0.8 for partly legible
text, and below 0.5 for guesses.
"""


def parse_transcription(text: str) -> OCRResult:
    """Parse the JSON transcription returned by an LLM vision backend."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)

    data = json.loads(cleaned)
    blocks = [
        OCRBlock(text=b.get("text", ""), confidence=b.get("confidence"))
        for b in data.get("blocks", [])
    ]
    full_text = "\n".join(b.text for b in blocks)
    return OCRResult(text=full_text, pages=[OCRPage(blocks=blocks)] if blocks else [])


class OCRBackend(ABC):
    """Abstract base for receipt text recognition."""

    @abstractmethod
    async def recognize(self, image_path: str) -> OCRResult:
        """Read all text from a receipt image.

        Per-block confidences should be reported where the provider has them.
        """
        ...


def create_backend(config: VaultConfig) -> OCRBackend:
    """Create an OCR backend based on configuration."""
    backend_name = config.ocr.backend

    match backend_name:
        case "claude":
            from .claude import ClaudeOCRBackend

            return ClaudeOCRBackend(
                api_key=config.ocr.claude.api_key,
                model=config.ocr.claude.model,
            )
        case "gemini":
            from .gemini import GeminiOCRBackend

            return GeminiOCRBackend(
                api_key=config.ocr.gemini.api_key,
                model=config.ocr.gemini.model,
            )
        case "tesseract":
            from .tesseract import TesseractOCRBackend

            return TesseractOCRBackend(
                lang=config.ocr.tesseract.lang,
                config=config.ocr.tesseract.config,
            )
        case _:
            raise ValueError(
                f"Unknown OCR backend: {backend_name!r} "
                f"(choose one of claude / gemini / tesseract)"
            )
