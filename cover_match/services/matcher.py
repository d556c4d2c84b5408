import asyncio
import logging

from cover_match.config import Settings
from cover_match.errors import AnalysisCancelledError
from cover_match.interfaces.book_search import BookSearchClient
from cover_match.interfaces.catalog import LocalCatalog
from cover_match.models import (
    BookLookupResult,
    ExternalBook,
    ExtractedWord,
    ScoredCandidate,
    SearchOutcome,
)
from cover_match.services.scoring import build_word_set, score_and_filter, word_match_score
from cover_match.services.sharpener import sharpen_words

logger = logging.getLogger(__name__)


def _raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelledError("Cover analysis cancelled")


class BookMatcher:
    """Searches the catalogs for the words of a cover, sharpening them between attempts."""

    def __init__(
        self,
        book_search: BookSearchClient,
        catalog: LocalCatalog,
        settings: Settings,
    ) -> None:
        self._search = book_search
        self._catalog = catalog
        self._settings = settings

    async def find_matches(
        self,
        words: list[ExtractedWord],
        request_id: str = "-",
        cancel_event: asyncio.Event | None = None,
    ) -> SearchOutcome:
        max_retries = self._settings.max_lookup_retries
        current_words = words
        attempts = 0

        for attempt in range(max_retries):
            if not current_words:
                break

            _raise_if_cancelled(cancel_event)
            attempts += 1
            candidates = await self._search_attempt(
                current_words, request_id, attempt, cancel_event
            )
            if candidates:
                return SearchOutcome(candidates, current_words, attempts)

            if attempt == max_retries - 1:
                break

            sharpened = sharpen_words(current_words, self._settings)
            if sharpened is current_words:
                logger.info(
                    "Sharpening made no progress, stopping [request_id=%s attempt=%d]",
                    request_id, attempt + 1,
                )
                break
            current_words = sharpened

        return SearchOutcome([], current_words, attempts)

    async def _search_attempt(
        self,
        words: list[ExtractedWord],
        request_id: str,
        attempt: int,
        cancel_event: asyncio.Event | None,
    ) -> list[ScoredCandidate]:
        query = " ".join(w.text for w in words)
        logger.info(
            "Search attempt %d/%d [request_id=%s filtered_words=%d text_length=%d]",
            attempt + 1, self._settings.max_lookup_retries, request_id, len(words), len(query),
        )

        ocr_words = build_word_set(words)
        try:
            raw_results = await self._search.search(
                query, limit=self._settings.openlibrary_result_limit
            )
        except Exception as e:
            logger.warning(
                "Book lookup failed, treating as no results [request_id=%s attempt=%d]: %s",
                request_id, attempt + 1, e,
            )
            raw_results = []

        scored = score_and_filter(
            raw_results, ocr_words, self._settings.min_word_match_threshold
        )
        logger.info(
            "Search results [request_id=%s attempt=%d raw_results=%d filtered_results=%d]",
            request_id, attempt + 1, len(raw_results), len(scored),
        )
        if not scored:
            return []

        _raise_if_cancelled(cancel_event)
        return await self.merge_with_local([book for book, _score in scored], ocr_words)

    async def merge_with_local(
        self, external_matches: list[BookLookupResult], ocr_words: set[str]
    ) -> list[ScoredCandidate]:
        """Rank local catalog books alongside lookup hits the catalog does not have.

        Local books win ties because they can be shared straight away; an
        external hit has to be imported first.
        """
        threshold = self._settings.min_word_match_threshold
        titles = {m.title.lower() for m in external_matches}
        authors = {m.author.lower() for m in external_matches}

        local_books = await self._catalog.find_by_titles_or_authors(titles, authors)

        candidates: list[ScoredCandidate] = []
        for book in local_books:
            score = word_match_score(book.title, book.author, ocr_words)
            if score >= threshold:
                candidates.append(ScoredCandidate(book, score))

        local_titles = {book.title.lower() for book in local_books}
        for match in external_matches:
            if match.title.lower() in local_titles:
                continue
            book = ExternalBook(
                title=match.title,
                author=match.author,
                isbn=match.isbn,
                thumbnail_url=match.thumbnail_url,
            )
            candidates.append(
                ScoredCandidate(book, word_match_score(match.title, match.author, ocr_words))
            )

        candidates.sort(key=lambda c: (c.score, c.is_local), reverse=True)
        return candidates
