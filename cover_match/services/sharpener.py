"""Narrow a search query using the typographic hierarchy of a book cover.

When a lookup finds nothing, the words are usually diluted by subtitles,
blurbs or award stickers. Those are set in smaller type than the title and
author, so words are grouped into size tiers and everything below the largest
proportional drop between tiers is discarded.
"""

import logging
from dataclasses import dataclass, field

from cover_match.config import Settings
from cover_match.models import ExtractedWord

logger = logging.getLogger(__name__)


@dataclass
class SizeTier:
    representative_size: float
    words: list[ExtractedWord] = field(default_factory=list)


def sharpen_words(words: list[ExtractedWord], settings: Settings) -> list[ExtractedWord]:
    """Return the prominent subset of ``words``, or ``words`` itself if no cut applies.

    Callers detect "no progress" by identity (``result is words``).
    """
    if len(words) < settings.sharpen_min_words_required:
        return words

    if all(word.size <= 0 for word in words):
        return words

    tiers = build_size_tiers(words, settings.sharpen_tier_grouping_tolerance)
    if len(tiers) < settings.sharpen_min_tiers_required:
        logger.debug("Sharpening skipped: only %d size tiers", len(tiers))
        return words

    best_index, best_ratio = find_largest_gap(tiers)
    if best_ratio < settings.sharpen_min_gap_threshold:
        logger.debug("Sharpening skipped: largest gap %.2f below threshold", best_ratio)
        return words

    surviving = {id(word) for tier in tiers[: best_index + 1] for word in tier.words}
    if len(surviving) < settings.sharpen_min_words_after_cut:
        return words

    sharpened = [word for word in words if id(word) in surviving]
    logger.debug(
        "Sharpened %d words to %d (tiers=%d, cut after tier %d, gap=%.2f)",
        len(words), len(sharpened), len(tiers), best_index, best_ratio,
    )
    return sharpened


def build_size_tiers(words: list[ExtractedWord], tolerance: float) -> list[SizeTier]:
    tiers: list[SizeTier] = []
    current: SizeTier | None = None

    for word in sorted((w for w in words if w.size > 0), key=lambda w: w.size, reverse=True):
        if current is None or word.size < current.representative_size * (1 - tolerance):
            current = SizeTier(representative_size=word.size)
            tiers.append(current)
        current.words.append(word)

    return tiers


def find_largest_gap(tiers: list[SizeTier]) -> tuple[int, float]:
    """Index of the tier above the largest relative size drop, and that drop."""
    best_index = -1
    best_ratio = 0.0

    for i in range(len(tiers) - 1):
        upper = tiers[i].representative_size
        lower = tiers[i + 1].representative_size
        ratio = (upper - lower) / upper
        if ratio > best_ratio:
            best_index = i
            best_ratio = ratio

    return best_index, best_ratio
