"""Tests for OCR backends (mocked provider calls)."""

import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from receiptvault.config import load_config
from receiptvault.ocr import OCRResult, create_backend, parse_transcription
from receiptvault.ocr.claude import ClaudeOCRBackend
from receiptvault.ocr.gemini import GeminiOCRBackend
from receiptvault.ocr.tesseract import TesseractOCRBackend, _blocks_from_data

TRANSCRIPTION = json.dumps({
    "blocks": [
        {"text": "SPINNEYS", "confidence": 0.95},
        {"text": "TOTAL 465,000 L.L.", "confidence": 0.85},
    ]
})


class TestCreateBackend:
    def test_default_is_tesseract(self):
        backend = create_backend(load_config())
        assert isinstance(backend, TesseractOCRBackend)

    def test_create_claude_backend(self):
        config = load_config()
        config.ocr.backend = "claude"
        assert isinstance(create_backend(config), ClaudeOCRBackend)

    def test_create_gemini_backend(self):
        config = load_config()
        config.ocr.backend = "gemini"
        assert isinstance(create_backend(config), GeminiOCRBackend)

    def test_create_unknown_backend(self):
        config = load_config()
        config.ocr.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown OCR backend"):
            create_backend(config)


class TestParseTranscription:
    def test_parse_blocks(self):
        result = parse_transcription(TRANSCRIPTION)
        assert result.text == "SPINNEYS\nTOTAL 465,000 L.L."
        assert len(result.pages) == 1
        assert [b.confidence for b in result.pages[0].blocks] == [0.95, 0.85]

    def test_parse_with_markdown_fences(self):
        result = parse_transcription(f"```json\n{TRANSCRIPTION}\n```")
        assert result.text.startswith("SPINNEYS")

    def test_missing_confidence(self):
        result = parse_transcription('{"blocks": [{"text": "HAPPY"}]}')
        assert result.pages[0].blocks[0].confidence is None

    def test_no_blocks(self):
        result = parse_transcription('{"blocks": []}')
        assert result == OCRResult(text="", pages=[])


class TestTesseractBlocks:
    def test_groups_words_by_block(self):
        data = {
            "block_num": [0, 1, 1, 1, 2, 2],
            "text": ["", "SPINNEYS", "Achrafieh", "", "TOTAL", "465,000"],
            "conf": [-1, 90, 80, -1, 70, "50"],
        }
        blocks = _blocks_from_data(data)
        assert [b.text for b in blocks] == ["SPINNEYS Achrafieh", "TOTAL 465,000"]
        assert blocks[0].confidence == pytest.approx(0.85)
        assert blocks[1].confidence == pytest.approx(0.6)

    def test_no_words(self):
        assert _blocks_from_data({"block_num": [], "text": [], "conf": []}) == []


class TestClaudeOCRBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = ClaudeOCRBackend(api_key="")
        with pytest.raises(ValueError, match="API key"):
            await backend.recognize("/tmp/receipt.jpg")

    @pytest.mark.asyncio
    async def test_recognize_mocked(self, tmp_path):
        img = tmp_path / "receipt.jpg"
        img.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")

        mock_response = MagicMock()
        mock_response.content = [MagicMock(text=TRANSCRIPTION)]

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeOCRBackend(api_key="test-key")
            result = await backend.recognize(str(img))

        assert result.text == "SPINNEYS\nTOTAL 465,000 L.L."
        kwargs = mock_client.messages.create.call_args.kwargs
        content = kwargs["messages"][0]["content"]
        assert content[0]["source"]["media_type"] == "image/jpeg"


class TestGeminiOCRBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = GeminiOCRBackend(api_key="")
        with pytest.raises(ValueError, match="API key"):
            await backend.recognize("/tmp/receipt.jpg")

    @pytest.mark.asyncio
    async def test_recognize_mocked(self, tmp_path):
        img = tmp_path / "receipt.png"
        img.write_bytes(b"\x89PNGfake")

        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(
            return_value=MagicMock(text=TRANSCRIPTION)
        )
        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules,
            {"google": mock_google, "google.generativeai": mock_genai},
        ):
            backend = GeminiOCRBackend(api_key="test-key")
            result = await backend.recognize(str(img))

        mock_genai.configure.assert_called_once_with(api_key="test-key")
        assert len(result.pages[0].blocks) == 2
        parts = mock_model.generate_content_async.call_args.args[0]
        assert parts[0]["mime_type"] == "image/png"


class TestTesseractOCRBackend:
    @pytest.mark.asyncio
    async def test_recognize_mocked(self):
        mock_tess = MagicMock()
        mock_tess.image_to_string.return_value = "HAPPY\nTOTAL 5,000"
        mock_tess.image_to_data.return_value = {
            "block_num": [1, 2, 2],
            "text": ["HAPPY", "TOTAL", "5,000"],
            "conf": [96, 90, 80],
        }

        mock_image_mod = MagicMock()
        mock_pil = MagicMock()
        mock_pil.Image = mock_image_mod
        mock_ops = MagicMock()
        mock_pil.ImageOps = mock_ops

        with patch.dict(
            sys.modules,
            {
                "pytesseract": mock_tess,
                "PIL": mock_pil,
                "PIL.Image": mock_image_mod,
                "PIL.ImageOps": mock_ops,
            },
        ):
            backend = TesseractOCRBackend(lang="ara+eng")
            result = await backend.recognize("/tmp/receipt.jpg")

        assert result.text == "HAPPY\nTOTAL 5,000"
        confidences = [b.confidence for b in result.pages[0].blocks]
        assert confidences == [pytest.approx(0.96), pytest.approx(0.85)]
        assert mock_tess.image_to_string.call_args.kwargs["lang"] == "ara+eng"
