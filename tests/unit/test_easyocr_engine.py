from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from cover_match.engines.easyocr_engine import EasyOcrEngine
from cover_match.models import OcrLine

FAKE_BYTES = b"fake image bytes"

EASYOCR_RAW_RESULT = [
    ([[0, 0], [200, 0], [200, 50], [0, 50]], "The Great Gatsby", 0.95),
    ([[0, 60], [200, 60], [200, 100], [0, 100]], "F Scott Fitzgerald", 0.88),
]


@pytest.fixture
def mock_reader():
    with patch("cover_match.engines.easyocr_engine.easyocr.Reader") as MockReader:
        instance = MagicMock()
        MockReader.return_value = instance
        yield MockReader, instance


@pytest.fixture
def mock_image():
    with patch("cover_match.engines.easyocr_engine.Image.open") as mock_open, \
         patch("cover_match.engines.easyocr_engine.np.array") as mock_array:
        mock_open.return_value = MagicMock()
        mock_array.return_value = np.zeros((100, 100, 3), dtype=np.uint8)
        yield


class TestEasyOcrEngineInit:
    def test_default_params(self, mock_reader):
        MockReader, _ = mock_reader
        EasyOcrEngine()
        MockReader.assert_called_once_with(["en"], gpu=False)

    def test_custom_languages(self, mock_reader):
        MockReader, _ = mock_reader
        EasyOcrEngine(languages=["en", "fr"])
        MockReader.assert_called_once_with(["en", "fr"], gpu=False)


class TestEasyOcrEngineExtractLines:
    async def test_flattens_boxes(self, mock_reader, mock_image):
        _, reader_instance = mock_reader
        reader_instance.readtext.return_value = EASYOCR_RAW_RESULT

        lines = await EasyOcrEngine().extract_lines(FAKE_BYTES, "image/jpeg")

        assert lines[0] == OcrLine(
            text="The Great Gatsby", bounding_box=[0, 0, 200, 0, 200, 50, 0, 50]
        )
        assert lines[0].text_size == 50
        assert lines[1].text_size == 40

    async def test_empty_result(self, mock_reader, mock_image):
        _, reader_instance = mock_reader
        reader_instance.readtext.return_value = []
        assert await EasyOcrEngine().extract_lines(FAKE_BYTES, "image/jpeg") == []

    async def test_reader_error_propagates(self, mock_reader, mock_image):
        _, reader_instance = mock_reader
        reader_instance.readtext.side_effect = RuntimeError("model crashed")
        with pytest.raises(RuntimeError, match="model crashed"):
            await EasyOcrEngine().extract_lines(FAKE_BYTES, "image/jpeg")


class TestEasyOcrEngineAnalyze:
    async def test_filters_words(self, mock_reader, mock_image, settings):
        _, reader_instance = mock_reader
        reader_instance.readtext.return_value = EASYOCR_RAW_RESULT

        result = await EasyOcrEngine().analyze(FAKE_BYTES, "image/jpeg", settings)

        assert result.is_success is True
        assert result.raw_text == ["The Great Gatsby", "F Scott Fitzgerald"]
        assert [w.text for w in result.filtered_words] == [
            "The", "Great", "Gatsby", "F", "Scott", "Fitzgerald",
        ]

    async def test_bad_image_becomes_failure(self, mock_reader, settings):
        with patch("cover_match.engines.easyocr_engine.Image.open", side_effect=Exception("bad image")):
            result = await EasyOcrEngine().analyze(b"not valid", "image/jpeg", settings)

        assert result.is_success is False
        assert "bad image" in result.error_message
