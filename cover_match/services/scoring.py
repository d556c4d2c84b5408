from cover_match.models import BookLookupResult, ExtractedWord

_STRIP_CHARS = ",.!?;:"


def normalize_word(word: str) -> str:
    return word.lower().strip(_STRIP_CHARS)


def _tokens(text: str) -> list[str]:
    normalized = (normalize_word(w) for w in text.split())
    return [w for w in normalized if len(w) > 2]


def build_word_set(words: list[ExtractedWord]) -> set[str]:
    return {w for w in (normalize_word(word.text) for word in words) if len(w) > 2}


def word_match_score(title: str, author: str, ocr_words: set[str]) -> float:
    """Fraction of the book's title and author tokens found in the OCR words.

    Extra OCR words do not lower the score, so a cover full of blurb text can
    still fully match a short title.
    """
    if not ocr_words:
        return 0.0

    book_words = _tokens(title) + _tokens(author)
    if not book_words:
        return 0.0

    match_count = sum(1 for w in book_words if w in ocr_words)
    return match_count / len(book_words)


def score_and_filter(
    results: list[BookLookupResult], ocr_words: set[str], threshold: float
) -> list[tuple[BookLookupResult, float]]:
    scored: list[tuple[BookLookupResult, float]] = []
    for book in results:
        score = word_match_score(book.title, book.author, ocr_words)
        if score >= threshold:
            scored.append((book, score))
    scored.sort(key=lambda x: x[1], reverse=True)
    return scored
