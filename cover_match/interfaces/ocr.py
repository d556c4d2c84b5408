import logging
from abc import ABC, abstractmethod

from cover_match.config import Settings
from cover_match.errors import OcrTimeoutError
from cover_match.models import CoverAnalysisResult, OcrFailureKind, OcrLine
from cover_match.services.text_filter import extract_filtered_words

logger = logging.getLogger(__name__)


class OcrEngine(ABC):
    @abstractmethod
    async def extract_lines(self, image_bytes: bytes, content_type: str) -> list[OcrLine]:
        ...

    async def analyze(
        self, image_bytes: bytes, content_type: str, settings: Settings
    ) -> CoverAnalysisResult:
        try:
            lines = await self.extract_lines(image_bytes, content_type)
        except OcrTimeoutError as e:
            logger.warning("OCR timed out in %s: %s", type(self).__name__, e)
            return CoverAnalysisResult.failure(
                f"OCR timed out: {e}", OcrFailureKind.TIMEOUT
            )
        except Exception as e:
            logger.warning("OCR failed in %s: %s", type(self).__name__, e)
            return CoverAnalysisResult.failure(
                f"OCR failed: {e}", OcrFailureKind.BACKEND_ERROR
            )

        words = extract_filtered_words(lines, settings)
        logger.info(
            "Cover OCR complete: filtered_words=%d total_lines=%d", len(words), len(lines)
        )
        return CoverAnalysisResult.success(words, [line.text for line in lines])
