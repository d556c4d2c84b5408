from abc import ABC, abstractmethod

from cover_match.models import BookLookupResult


class BookSearchClient(ABC):
    @abstractmethod
    async def search(self, query: str, limit: int = 11) -> list[BookLookupResult]:
        ...
