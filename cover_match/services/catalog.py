import json
from pathlib import Path

from cover_match.interfaces.catalog import LocalCatalog
from cover_match.models import LocalBook


class InMemoryCatalog(LocalCatalog):
    """Local catalog held in memory, optionally seeded from a JSON file.

    The seed file is a list of ``{"title": ..., "author": ...}`` objects;
    ``id`` and ``externalThumbnailUrl`` keys are honoured when present.
    """

    def __init__(self, books: list[LocalBook] | None = None) -> None:
        self._books: list[LocalBook] = []
        self._next_id = 1
        for book in books or []:
            self._store(book)

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryCatalog":
        entries = json.loads(Path(path).read_text(encoding="utf-8"))
        catalog = cls()
        for entry in entries:
            if "id" in entry:
                catalog._store(LocalBook.model_validate(entry))
            else:
                catalog.add(
                    entry["title"],
                    entry["author"],
                    entry.get("externalThumbnailUrl", entry.get("external_thumbnail_url")),
                )
        return catalog

    def _store(self, book: LocalBook) -> None:
        if self.get(book.id) is not None:
            raise ValueError(f"Duplicate catalog id {book.id}")
        self._books.append(book)
        self._next_id = max(self._next_id, book.id + 1)

    def add(
        self, title: str, author: str, external_thumbnail_url: str | None = None
    ) -> LocalBook:
        book = LocalBook(
            id=self._next_id,
            title=title,
            author=author,
            external_thumbnail_url=external_thumbnail_url,
        )
        self._store(book)
        return book

    def get(self, book_id: int) -> LocalBook | None:
        return next((b for b in self._books if b.id == book_id), None)

    def search(self, text: str = "") -> list[LocalBook]:
        needle = text.lower()
        return [
            b for b in self._books
            if needle in b.title.lower() or needle in b.author.lower()
        ]

    async def find_by_titles_or_authors(
        self, titles: set[str], authors: set[str]
    ) -> list[LocalBook]:
        return [
            b for b in self._books
            if b.title.lower() in titles or b.author.lower() in authors
        ]
