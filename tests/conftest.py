import pytest

from cover_match.config import Settings
from cover_match.interfaces.book_search import BookSearchClient
from cover_match.interfaces.catalog import LocalCatalog
from cover_match.interfaces.ocr import OcrEngine
from cover_match.models import BookLookupResult, ExtractedWord, LocalBook, OcrLine
from cover_match.services.catalog import InMemoryCatalog


class MockOcrEngine(OcrEngine):
    def __init__(self, lines: list[OcrLine] | None = None, error: Exception | None = None):
        self._lines = lines
        self._error = error
        self.calls = 0

    async def extract_lines(self, image_bytes: bytes, content_type: str) -> list[OcrLine]:
        self.calls += 1
        if self._error:
            raise self._error
        assert self._lines is not None
        return self._lines


class MockBookSearchClient(BookSearchClient):
    """Returns ``responses`` in order, one list per call, repeating the last."""

    def __init__(
        self,
        results: list[BookLookupResult] | None = None,
        responses: list[list[BookLookupResult]] | None = None,
        error: Exception | None = None,
    ):
        self._responses = responses if responses is not None else [results or []]
        self._error = error
        self.queries: list[str] = []

    async def search(self, query: str, limit: int = 11) -> list[BookLookupResult]:
        self.queries.append(query)
        if self._error:
            raise self._error
        index = min(len(self.queries) - 1, len(self._responses) - 1)
        return self._responses[index]


class FailingCatalog(LocalCatalog):
    async def find_by_titles_or_authors(self, titles, authors):
        raise RuntimeError("catalog offline")


def horizontal_line(text: str, size: float, top: float = 0, width: float = 300) -> OcrLine:
    return OcrLine(
        text=text,
        bounding_box=[0, top, width, top, width, top + size, 0, top + size],
    )


def words(*pairs: tuple[str, float]) -> list[ExtractedWord]:
    return [ExtractedWord(text=text, size=size) for text, size in pairs]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def sample_ocr_lines() -> list[OcrLine]:
    return [
        horizontal_line("MISTBORN", 40, top=0),
        horizontal_line("Brandon Sanderson", 20, top=60),
        horizontal_line("A Novel", 8, top=100),
    ]


@pytest.fixture
def mistborn_hit() -> BookLookupResult:
    return BookLookupResult(
        title="Mistborn",
        author="Brandon Sanderson",
        isbn="9780765311788",
        thumbnail_url="https://covers.openlibrary.org/b/id/12345-M.jpg",
    )


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(
        [
            LocalBook(id=1, title="Snow Crash", author="Neal Stephenson"),
            LocalBook(id=2, title="Jade City", author="Fonda Lee"),
        ]
    )
