import logging

from cover_match.config import Settings
from cover_match.models import ExtractedWord, OcrLine

logger = logging.getLogger(__name__)


def extract_filtered_words(lines: list[OcrLine], settings: Settings) -> list[ExtractedWord]:
    """Reduce raw OCR lines to the words most likely to be title and author.

    Titles and author names are set in the largest type on a cover, so lines
    well below the largest text size are dropped. When the backend supplied
    no usable geometry every word of plausible length is kept instead.
    """
    sizes = [line.text_size for line in lines]
    positive_sizes = [size for size in sizes if size > 0]

    if not positive_sizes:
        return [
            ExtractedWord(text=word, size=0.0)
            for line in lines
            for word in line.text.split()
            if settings.min_title_length <= len(word) <= settings.max_title_length
        ]

    max_size = max(positive_sizes)
    threshold = max_size * settings.text_size_filter_threshold_percentage

    words = [
        ExtractedWord(text=word, size=size)
        for line, size in zip(lines, sizes)
        if size >= threshold
        for word in line.text.split()
    ]

    logger.debug(
        "Text filtering: max_size=%s threshold=%s total_lines=%d extracted_words=%d",
        max_size, threshold, len(lines), len(words),
    )
    return apply_word_count_limits(words, settings)


def apply_word_count_limits(
    words: list[ExtractedWord], settings: Settings
) -> list[ExtractedWord]:
    count = len(words)

    if count < settings.min_search_words:
        logger.debug(
            "Word count %d below minimum %d, keeping all words",
            count, settings.min_search_words,
        )
        return words

    if count <= settings.max_search_words:
        return words

    # sorted() is stable, so equally sized words keep reading order
    by_size = sorted(range(count), key=lambda i: words[i].size, reverse=True)
    keep = sorted(by_size[: settings.max_search_words])
    trimmed = [words[i] for i in keep]

    logger.debug(
        "Word count %d exceeds maximum %d, kept the %d largest",
        count, settings.max_search_words, len(trimmed),
    )
    return trimmed
