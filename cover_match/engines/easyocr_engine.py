import asyncio
import io

import easyocr
import numpy as np
from PIL import Image

from cover_match.interfaces.ocr import OcrEngine
from cover_match.models import OcrLine


class EasyOcrEngine(OcrEngine):
    def __init__(self, languages: list[str] | None = None, gpu: bool = False) -> None:
        self._reader = easyocr.Reader(languages or ["en"], gpu=gpu)

    async def extract_lines(self, image_bytes: bytes, content_type: str) -> list[OcrLine]:
        image_array = _bytes_to_array(image_bytes)
        loop = asyncio.get_running_loop()
        raw_results = await loop.run_in_executor(
            None, lambda: self._reader.readtext(image_array)
        )
        return _build_lines(raw_results)


def _bytes_to_array(image_bytes: bytes) -> np.ndarray:
    image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
    return np.array(image)


def _build_lines(
    raw_results: list[tuple[list[list[float]], str, float]],
) -> list[OcrLine]:
    # EasyOCR boxes are four [x, y] corners: TL, TR, BR, BL
    return [
        OcrLine(
            text=text,
            bounding_box=[float(c) for point in bounding_box for c in point],
        )
        for bounding_box, text, _confidence in raw_results
    ]
