import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, File, Header, HTTPException, Request, Response, UploadFile

from cover_match.config import Settings, settings
from cover_match.interfaces.ocr import OcrEngine
from cover_match.models import CoverAnalysisResponse, HealthResponse
from cover_match.services.analyzer import CoverAnalyzer
from cover_match.services.catalog import InMemoryCatalog
from cover_match.services.matcher import BookMatcher
from cover_match.services.openlibrary import OpenLibraryClient

VERSION = "0.2.0"
DISCONNECT_POLL_SECONDS = 0.5

logger = logging.getLogger(__name__)

analyzer: CoverAnalyzer | None = None


def build_ocr_engine(config: Settings, client: httpx.AsyncClient) -> OcrEngine:
    if config.ocr_provider == "azure":
        from cover_match.engines.azure_vision_engine import AzureVisionEngine

        return AzureVisionEngine(
            endpoint=config.azure_vision_endpoint,
            api_key=config.azure_vision_api_key,
            client=client,
            max_polling_attempts=config.max_ocr_polling_attempts,
            polling_delay_ms=config.ocr_polling_delay_ms,
        )
    if config.ocr_provider == "tesseract":
        from cover_match.engines.tesseract_engine import TesseractEngine

        return TesseractEngine(
            language=config.tesseract_language,
            timeout=config.tesseract_timeout_seconds,
        )

    from cover_match.engines.easyocr_engine import EasyOcrEngine

    return EasyOcrEngine()


@asynccontextmanager
async def lifespan(app: FastAPI):
    global analyzer
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    async with httpx.AsyncClient() as client:
        ocr_engine = build_ocr_engine(settings, client)
        book_search = OpenLibraryClient(
            client,
            user_agent=settings.openlibrary_user_agent,
            timeout=settings.openlibrary_timeout_seconds,
        )
        if settings.catalog_path is not None:
            catalog = InMemoryCatalog.from_json_file(settings.catalog_path)
        else:
            catalog = InMemoryCatalog()
        matcher = BookMatcher(book_search, catalog, settings)
        analyzer = CoverAnalyzer(ocr_engine, matcher, settings)
        logger.info("Cover analyzer ready (ocr_provider=%s)", settings.ocr_provider)
        yield
        analyzer = None


async def watch_disconnect(
    request: Request,
    cancel_event: asyncio.Event,
    poll_seconds: float = DISCONNECT_POLL_SECONDS,
) -> None:
    """Set ``cancel_event`` once the client has gone away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling analysis")
            cancel_event.set()
            return
        await asyncio.sleep(poll_seconds)


app = FastAPI(title="Book Cover Detection", version=VERSION, lifespan=lifespan)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="healthy", version=VERSION)


@app.post("/analyze", response_model=CoverAnalysisResponse)
async def analyze_cover(
    request: Request,
    response: Response,
    file: UploadFile = File(...),
    x_request_id: str | None = Header(default=None),
):
    request_id = x_request_id or uuid.uuid4().hex
    response.headers["X-Request-ID"] = request_id

    if file.content_type not in settings.supported_image_types:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid content type: {file.content_type}. Accepted: JPEG, PNG, WebP",
        )

    image_bytes = await file.read()

    if not image_bytes:
        raise HTTPException(status_code=400, detail="No image file provided")

    if len(image_bytes) > settings.max_image_file_size_bytes:
        raise HTTPException(
            status_code=400,
            detail=(
                f"File too large: {len(image_bytes)} bytes. "
                f"Max: {settings.max_image_file_size_bytes} bytes"
            ),
        )

    assert analyzer is not None
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        return await analyzer.analyze(
            image_bytes, file.content_type, request_id, cancel_event=cancel_event
        )
    finally:
        watcher.cancel()
