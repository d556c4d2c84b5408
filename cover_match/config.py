from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Text filtering. Lines smaller than this fraction of the largest line
    # are dropped as blurbs, stickers or spine text.
    text_size_filter_threshold_percentage: float = Field(0.2, ge=0.0, le=1.0)
    min_title_length: int = Field(3, ge=1)
    max_title_length: int = Field(200, ge=1)
    min_search_words: int = Field(2, ge=0)
    max_search_words: int = Field(15, ge=1)

    # Matching
    min_word_match_threshold: float = Field(0.5, ge=0.0, le=1.0)
    max_lookup_retries: int = Field(3, ge=1)
    max_results_per_response: int = Field(5, ge=1)

    # Sharpening. Sizes within the grouping tolerance of a tier's largest
    # word share that tier; a drop of at least the gap threshold between
    # tiers counts as a visual boundary.
    sharpen_min_words_required: int = Field(2, ge=1)
    sharpen_min_tiers_required: int = Field(3, ge=2)
    sharpen_tier_grouping_tolerance: float = Field(0.10, ge=0.0, lt=1.0)
    sharpen_min_gap_threshold: float = Field(0.25, ge=0.0, le=1.0)
    sharpen_min_words_after_cut: int = Field(2, ge=1)

    # Upload validation. 4 MB is the Azure Read API limit.
    max_image_file_size_bytes: int = 4 * 1024 * 1024
    supported_image_types: list[str] = ["image/jpeg", "image/png", "image/webp"]

    # OCR backends
    ocr_provider: Literal["easyocr", "azure", "tesseract"] = "easyocr"
    azure_vision_endpoint: str | None = None
    azure_vision_api_key: str | None = None
    max_ocr_polling_attempts: int = Field(10, ge=1)
    ocr_polling_delay_ms: int = Field(1000, ge=0)
    tesseract_language: str = "eng"
    tesseract_timeout_seconds: float = Field(30.0, gt=0)

    # External lookup
    openlibrary_user_agent: str = "Community Bookshare App (landonpvance@gmail.com)"
    openlibrary_result_limit: int = Field(11, ge=1)
    openlibrary_timeout_seconds: float = Field(10.0, gt=0)

    catalog_path: Path | None = None
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.min_title_length > self.max_title_length:
            raise ValueError("min_title_length must not exceed max_title_length")
        if self.min_search_words > self.max_search_words:
            raise ValueError("min_search_words must not exceed max_search_words")
        if self.ocr_provider == "azure" and not (
            self.azure_vision_endpoint and self.azure_vision_api_key
        ):
            raise ValueError(
                "azure_vision_endpoint and azure_vision_api_key are required "
                "when ocr_provider is 'azure'"
            )
        return self


settings = Settings()
