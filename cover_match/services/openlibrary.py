import logging

import httpx

from cover_match.interfaces.book_search import BookSearchClient
from cover_match.models import BookLookupResult

logger = logging.getLogger(__name__)


class OpenLibraryClient(BookSearchClient):
    BASE_URL = "https://openlibrary.org"
    COVER_URL = "https://covers.openlibrary.org/b/id"
    USER_AGENT = "Community Bookshare App (landonpvance@gmail.com)"
    SEARCH_FIELDS = "title,author_name,isbn,cover_i"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._headers = {"User-Agent": user_agent or self.USER_AGENT}
        self._timeout = timeout

    async def search(self, query: str, limit: int = 11) -> list[BookLookupResult]:
        if not query.strip():
            return []
        data = await self._get_search_json({"q": query, "limit": limit})
        if data is None:
            return []
        return [self._to_result(doc) for doc in data.get("docs", [])[:limit]]

    async def get_by_isbn(self, isbn: str) -> BookLookupResult | None:
        clean_isbn = isbn.replace("-", "").replace(" ", "")
        data = await self._get_search_json({"isbn": clean_isbn, "limit": 1})
        docs = data.get("docs") if data else None
        if not docs:
            logger.info("No books found for ISBN %s", clean_isbn)
            return None
        result = self._to_result(docs[0])
        return result.model_copy(update={"isbn": clean_isbn})

    async def _get_search_json(self, params: dict) -> dict | None:
        url = f"{self.BASE_URL}/search.json"
        params = {**params, "fields": self.SEARCH_FIELDS}
        try:
            if self._client is not None:
                response = await self._client.get(
                    url, params=params, headers=self._headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as e:
            logger.error("Error calling OpenLibrary search %s: %s", params, e)
            return None

        if response.is_error:
            logger.warning(
                "OpenLibrary returned %d for search %s", response.status_code, params
            )
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error("OpenLibrary returned invalid JSON: %s", e)
            return None

    def _to_result(self, doc: dict) -> BookLookupResult:
        authors = doc.get("author_name") or []
        isbns = doc.get("isbn") or []
        cover_id = doc.get("cover_i")
        return BookLookupResult(
            title=doc.get("title") or "Unknown Title",
            author=authors[0] if authors else "Unknown Author",
            isbn=isbns[0] if isbns else None,
            thumbnail_url=f"{self.COVER_URL}/{cover_id}-M.jpg" if cover_id else None,
        )
