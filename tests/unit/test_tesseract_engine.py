from unittest.mock import MagicMock, patch

import pytest
import pytesseract

from cover_match.engines.tesseract_engine import TesseractEngine, group_words_into_lines
from cover_match.models import OcrFailureKind

COLUMNS = [
    "level", "page_num", "block_num", "par_num", "line_num", "word_num",
    "left", "top", "width", "height", "conf", "text",
]


def tsv_dict(rows: list[tuple]) -> dict[str, list]:
    return {name: [row[i] for row in rows] for i, name in enumerate(COLUMNS)}


ROWS = [
    # level 1-4 rows carry layout only
    (1, 1, 0, 0, 0, 0, 0, 0, 600, 800, -1, ""),
    (4, 1, 1, 1, 1, 0, 10, 20, 300, 60, -1, ""),
    (5, 1, 1, 1, 1, 1, 10, 20, 120, 60, 96.1, "SNOW"),
    (5, 1, 1, 1, 1, 2, 140, 22, 170, 58, 95.0, "CRASH"),
    (5, 1, 1, 1, 2, 1, 12, 100, 80, 25, 91.3, "Neal"),
    (5, 1, 1, 1, 2, 2, 100, 101, 150, 26, 90.0, "Stephenson"),
    (5, 1, 1, 1, 2, 3, 260, 100, 10, 25, -1, "~"),
    (5, 1, 1, 1, 2, 4, 280, 100, 10, 25, 80.0, "   "),
]


class TestGroupWordsIntoLines:
    def test_joins_words_per_line(self):
        lines = group_words_into_lines(tsv_dict(ROWS))
        assert [line.text for line in lines] == ["SNOW CRASH", "Neal Stephenson"]

    def test_union_bounding_box(self):
        lines = group_words_into_lines(tsv_dict(ROWS))
        assert lines[0].bounding_box == [10, 20, 310, 20, 310, 80, 10, 80]
        assert lines[0].text_size == 60

    def test_reading_order_by_layout_keys(self):
        rows = [
            (5, 1, 2, 1, 1, 1, 0, 500, 50, 20, 90, "second"),
            (5, 1, 1, 1, 1, 1, 0, 10, 50, 20, 90, "first"),
        ]
        lines = group_words_into_lines(tsv_dict(rows))
        assert [line.text for line in lines] == ["first", "second"]

    def test_skips_zero_sized_words(self):
        rows = [(5, 1, 1, 1, 1, 1, 0, 0, 0, 20, 90, "ghost")]
        assert group_words_into_lines(tsv_dict(rows)) == []

    def test_empty_output(self):
        assert group_words_into_lines(tsv_dict([])) == []


@pytest.fixture
def mock_image():
    with patch("cover_match.engines.tesseract_engine.Image.open") as mock_open:
        mock_open.return_value = MagicMock()
        yield


class TestTesseractEngine:
    async def test_extract_lines(self, mock_image):
        with patch(
            "cover_match.engines.tesseract_engine.pytesseract.image_to_data",
            return_value=tsv_dict(ROWS),
        ) as image_to_data:
            lines = await TesseractEngine(language="deu", timeout=5).extract_lines(
                b"img", "image/png"
            )

        assert len(lines) == 2
        kwargs = image_to_data.call_args.kwargs
        assert kwargs["lang"] == "deu"
        assert kwargs["timeout"] == 5
        assert kwargs["output_type"] == pytesseract.Output.DICT

    async def test_timeout_maps_to_timeout_failure(self, mock_image, settings):
        with patch(
            "cover_match.engines.tesseract_engine.pytesseract.image_to_data",
            side_effect=RuntimeError("Tesseract process timeout"),
        ):
            result = await TesseractEngine().analyze(b"img", "image/png", settings)

        assert result.is_success is False
        assert result.failure_kind is OcrFailureKind.TIMEOUT

    async def test_tesseract_error_maps_to_backend_failure(self, mock_image, settings):
        with patch(
            "cover_match.engines.tesseract_engine.pytesseract.image_to_data",
            side_effect=pytesseract.TesseractError(1, "Error opening data file"),
        ):
            result = await TesseractEngine().analyze(b"img", "image/png", settings)

        assert result.is_success is False
        assert result.failure_kind is OcrFailureKind.BACKEND_ERROR
        assert "Error opening data file" in result.error_message
