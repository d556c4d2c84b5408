import asyncio
import logging

from cover_match.config import Settings
from cover_match.errors import AnalysisCancelledError
from cover_match.interfaces.ocr import OcrEngine
from cover_match.models import AnalysisStatus, CoverAnalysisResponse
from cover_match.services.matcher import BookMatcher

logger = logging.getLogger(__name__)


class CoverAnalyzer:
    def __init__(
        self,
        ocr_engine: OcrEngine,
        matcher: BookMatcher,
        settings: Settings,
    ) -> None:
        self._ocr = ocr_engine
        self._matcher = matcher
        self._settings = settings

    async def analyze(
        self,
        image_bytes: bytes,
        content_type: str,
        request_id: str = "-",
        cancel_event: asyncio.Event | None = None,
    ) -> CoverAnalysisResponse:
        try:
            return await self._analyze(image_bytes, content_type, request_id, cancel_event)
        except AnalysisCancelledError as e:
            logger.info("Cover analysis cancelled [request_id=%s]", request_id)
            return _failure(str(e))

    async def _analyze(
        self,
        image_bytes: bytes,
        content_type: str,
        request_id: str,
        cancel_event: asyncio.Event | None,
    ) -> CoverAnalysisResponse:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError("Cover analysis cancelled")

        ocr_result = await self._ocr.analyze(image_bytes, content_type, self._settings)
        if not ocr_result.is_success:
            return _failure(ocr_result.error_message)

        try:
            outcome = await self._matcher.find_matches(
                ocr_result.filtered_words, request_id, cancel_event
            )
        except AnalysisCancelledError:
            raise
        except Exception as e:
            logger.exception("Book matching failed [request_id=%s]", request_id)
            return _failure(f"Book matching failed: {e}")

        candidates = outcome.candidates
        local_count = sum(1 for c in candidates if c.is_local)
        logger.info(
            "Cover analysis completed [request_id=%s ocr_lines=%d attempts=%d "
            "total_matches=%d local_matches=%d external_matches=%d]",
            request_id, len(ocr_result.raw_text), outcome.attempts,
            len(candidates), local_count, len(candidates) - local_count,
        )

        exact_match = next((c.book for c in candidates if c.score >= 1.0), None)
        limit = self._settings.max_results_per_response

        return CoverAnalysisResponse(
            analysis=AnalysisStatus(
                is_success=True,
                extracted_text=" ".join(w.text for w in outcome.words),
            ),
            matched_books=[c.book for c in candidates[:limit]],
            exact_match=exact_match,
        )


def _failure(message: str | None) -> CoverAnalysisResponse:
    return CoverAnalysisResponse(
        analysis=AnalysisStatus(is_success=False, error_message=message),
    )
