class CoverMatchError(Exception):
    """Base class for errors raised inside the cover matching pipeline."""


class OcrError(CoverMatchError):
    """The OCR backend rejected the image or failed to process it."""


class OcrTimeoutError(OcrError):
    """The OCR backend did not produce a result in time."""


class AnalysisCancelledError(CoverMatchError):
    """The caller signalled cancellation while the analysis was running."""
