from enum import Enum
from typing import Annotated, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )


class OcrLine(CamelModel):
    """One line of recognized text and its bounding polygon.

    ``bounding_box`` is flat ``[x1, y1, x2, y2, x3, y3, x4, y4]`` in
    top-left, top-right, bottom-right, bottom-left order.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    bounding_box: list[float] | None = None

    def _has_geometry(self) -> bool:
        return self.bounding_box is not None and len(self.bounding_box) >= 8

    @property
    def height(self) -> float:
        if not self._has_geometry():
            return 0.0
        box = self.bounding_box
        top = min(box[1], box[3])
        bottom = max(box[5], box[7])
        return max(bottom - top, 0.0)

    @property
    def width(self) -> float:
        if not self._has_geometry():
            return 0.0
        box = self.bounding_box
        left = min(box[0], box[6])
        right = max(box[2], box[4])
        return max(right - left, 0.0)

    @property
    def is_vertical(self) -> bool:
        if not self._has_geometry():
            return False
        box = self.bounding_box
        dx = abs(box[2] - box[0])
        dy = abs(box[3] - box[1])
        return dy > dx

    @property
    def text_size(self) -> float:
        """Orientation-independent font size: width for vertical text, height otherwise."""
        height = self.height
        width = self.width
        if height == 0 or width == 0:
            return 0.0
        return width if self.is_vertical else height


class ExtractedWord(CamelModel):
    model_config = ConfigDict(frozen=True)

    text: str
    size: float = 0.0


class OcrFailureKind(str, Enum):
    BACKEND_ERROR = "backend_error"
    TIMEOUT = "timeout"


class CoverAnalysisResult(CamelModel):
    is_success: bool
    error_message: str | None = None
    failure_kind: OcrFailureKind | None = None
    filtered_words: list[ExtractedWord] = []
    raw_text: list[str] = []

    @classmethod
    def success(
        cls, filtered_words: list[ExtractedWord], raw_text: list[str]
    ) -> "CoverAnalysisResult":
        return cls(is_success=True, filtered_words=filtered_words, raw_text=raw_text)

    @classmethod
    def failure(
        cls, message: str, kind: OcrFailureKind = OcrFailureKind.BACKEND_ERROR
    ) -> "CoverAnalysisResult":
        return cls(is_success=False, error_message=message, failure_kind=kind)


class BookLookupResult(CamelModel):
    title: str
    author: str
    isbn: str | None = None
    thumbnail_url: str | None = None


class LocalBook(CamelModel):
    source: Literal["local"] = "local"
    id: int = Field(gt=0)
    title: str
    author: str
    external_thumbnail_url: str | None = None

    @computed_field(alias="thumbnailUrl")
    @property
    def thumbnail_url(self) -> str:
        return self.external_thumbnail_url or f"/images/{self.id}.jpg"


class ExternalBook(CamelModel):
    """A lookup hit that is not in the local catalog yet."""

    source: Literal["external"] = "external"
    title: str
    author: str
    isbn: str | None = None
    thumbnail_url: str | None = None


CatalogEntry = Annotated[LocalBook | ExternalBook, Field(discriminator="source")]


class ScoredCandidate(NamedTuple):
    book: LocalBook | ExternalBook
    score: float

    @property
    def is_local(self) -> bool:
        return isinstance(self.book, LocalBook)


class SearchOutcome(NamedTuple):
    candidates: list[ScoredCandidate]
    words: list[ExtractedWord]
    attempts: int


class AnalysisStatus(CamelModel):
    is_success: bool
    error_message: str | None = None
    extracted_text: str | None = None


class CoverAnalysisResponse(CamelModel):
    analysis: AnalysisStatus
    matched_books: list[CatalogEntry] = []
    exact_match: CatalogEntry | None = None


class HealthResponse(CamelModel):
    status: str
    version: str
