from abc import ABC, abstractmethod

from cover_match.models import LocalBook


class LocalCatalog(ABC):
    @abstractmethod
    async def find_by_titles_or_authors(
        self, titles: set[str], authors: set[str]
    ) -> list[LocalBook]:
        """Books whose lowercased title is in ``titles`` or author is in ``authors``."""
        ...
