"""Local Tesseract OCR backend."""

from __future__ import annotations

import asyncio
import logging

from . import OCRBackend, OCRBlock, OCRPage, OCRResult

logger = logging.getLogger(__name__)


class TesseractOCRBackend(OCRBackend):
    """Read receipts with a local Tesseract install via pytesseract.

    Requires the ``ara`` and ``eng`` traineddata packs for the default
    language setting.
    """

    def __init__(self, lang: str = "ara+eng", config: str = "--oem 1 --psm 6") -> None:
        self._lang = lang
        self._config = config

    async def recognize(self, image_path: str) -> OCRResult:
        try:
            import pytesseract
            from PIL import Image, ImageOps
        except ImportError:
            raise ImportError(
                "pytesseract and Pillow are required: pip install 'receiptvault[tesseract]'"
            ) from None

        def _run() -> tuple[str, dict]:
            with Image.open(image_path) as im:
                img = ImageOps.exif_transpose(im).convert("L")
                text = pytesseract.image_to_string(
                    img, lang=self._lang, config=self._config
                )
                data = pytesseract.image_to_data(
                    img,
                    lang=self._lang,
                    config=self._config,
                    output_type=pytesseract.Output.DICT,
                )
            return text, data

        text, data = await asyncio.to_thread(_run)
        blocks = _blocks_from_data(data)
        logger.info(
            "Tesseract read %d characters in %d blocks from %s",
            len(text), len(blocks), image_path,
        )
        return OCRResult(text=text, pages=[OCRPage(blocks=blocks)] if blocks else [])


def _blocks_from_data(data: dict) -> list[OCRBlock]:
    """Group word-level ``image_to_data`` output into blocks.

    A block's confidence is the mean of its word confidences, scaled from
    Tesseract's 0-100 range to 0-1. Rows with conf -1 are layout rows, not
    words.
    """
    words: dict[int, list[tuple[str, float]]] = {}
    for block_num, word, conf in zip(data["block_num"], data["text"], data["conf"]):
        conf = float(conf)
        if conf < 0 or not str(word).strip():
            continue
        words.setdefault(int(block_num), []).append((str(word), conf))

    blocks: list[OCRBlock] = []
    for block_num in sorted(words):
        entries = words[block_num]
        blocks.append(
            OCRBlock(
                text=" ".join(w for w, _ in entries),
                confidence=sum(c for _, c in entries) / len(entries) / 100.0,
            )
        )
    return blocks
