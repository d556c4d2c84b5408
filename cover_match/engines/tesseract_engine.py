import asyncio
import io

import pytesseract
from PIL import Image

from cover_match.errors import OcrError, OcrTimeoutError
from cover_match.interfaces.ocr import OcrEngine
from cover_match.models import OcrLine


class TesseractEngine(OcrEngine):
    def __init__(
        self,
        language: str = "eng",
        timeout: float = 30.0,
        tesseract_cmd: str | None = None,
    ) -> None:
        self._language = language
        self._timeout = timeout
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    async def extract_lines(self, image_bytes: bytes, content_type: str) -> list[OcrLine]:
        image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, lambda: self._run_ocr(image))
        return group_words_into_lines(data)

    def _run_ocr(self, image: Image.Image) -> dict[str, list]:
        try:
            return pytesseract.image_to_data(
                image,
                lang=self._language,
                timeout=self._timeout,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as e:
            raise OcrError(f"Tesseract failed (status {e.status}): {e.message}") from e
        except RuntimeError as e:
            # pytesseract signals a killed process with a bare RuntimeError
            if "timeout" in str(e).lower():
                raise OcrTimeoutError("Tesseract processing timed out") from e
            raise


def group_words_into_lines(data: dict[str, list]) -> list[OcrLine]:
    """Join Tesseract word rows into lines with the union box of their words.

    Lines come out in reading order (page, block, paragraph, line). Rows that
    are not words (level != 5), carry no text, or have ``conf == -1`` are
    skipped.
    """
    lines: dict[tuple[int, int, int, int], dict] = {}

    for i, text in enumerate(data.get("text", [])):
        text = str(text).strip()
        if not text or int(data["level"][i]) != 5:
            continue
        if float(data["conf"][i]) < 0:
            continue
        width, height = int(data["width"][i]), int(data["height"][i])
        if width <= 0 or height <= 0:
            continue

        left, top = int(data["left"][i]), int(data["top"][i])
        key = (
            int(data["page_num"][i]),
            int(data["block_num"][i]),
            int(data["par_num"][i]),
            int(data["line_num"][i]),
        )
        line = lines.get(key)
        if line is None:
            lines[key] = {
                "left": left, "top": top,
                "right": left + width, "bottom": top + height,
                "words": [text],
            }
            continue
        line["left"] = min(line["left"], left)
        line["top"] = min(line["top"], top)
        line["right"] = max(line["right"], left + width)
        line["bottom"] = max(line["bottom"], top + height)
        line["words"].append(text)

    result = []
    for key in sorted(lines):
        line = lines[key]
        l, t, r, b = line["left"], line["top"], line["right"], line["bottom"]
        result.append(
            OcrLine(
                text=" ".join(line["words"]),
                bounding_box=[l, t, r, t, r, b, l, b],
            )
        )
    return result
