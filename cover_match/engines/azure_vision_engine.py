import asyncio
import logging

import httpx

from cover_match.errors import OcrError, OcrTimeoutError
from cover_match.interfaces.ocr import OcrEngine
from cover_match.models import OcrLine

logger = logging.getLogger(__name__)


class AzureVisionEngine(OcrEngine):
    """OCR through the Azure Computer Vision Read API (v3.2).

    The Read API is asynchronous: the image is submitted, then the
    ``Operation-Location`` URL is polled until the job succeeds or fails.
    """

    READ_PATH = "/vision/v3.2/read/analyze"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        max_polling_attempts: int = 10,
        polling_delay_ms: int = 1000,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._client = client
        self._max_polling_attempts = max_polling_attempts
        self._polling_delay = polling_delay_ms / 1000

    async def extract_lines(self, image_bytes: bytes, content_type: str) -> list[OcrLine]:
        try:
            if self._client is not None:
                return await self._read(self._client, image_bytes, content_type)
            async with httpx.AsyncClient() as client:
                return await self._read(client, image_bytes, content_type)
        except httpx.TimeoutException as e:
            raise OcrTimeoutError(f"Azure Vision request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise OcrError(
                f"Azure Vision returned {e.response.status_code}: {e.response.text}"
            ) from e

    async def _read(
        self, client: httpx.AsyncClient, image_bytes: bytes, content_type: str
    ) -> list[OcrLine]:
        response = await client.post(
            f"{self._endpoint}{self.READ_PATH}",
            content=image_bytes,
            headers={
                "Ocp-Apim-Subscription-Key": self._api_key,
                "Content-Type": content_type,
            },
        )
        response.raise_for_status()

        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise OcrError(
                "Azure Vision API did not return an Operation-Location header"
            )
        return await self._poll(client, operation_url)

    async def _poll(self, client: httpx.AsyncClient, operation_url: str) -> list[OcrLine]:
        for attempt in range(self._max_polling_attempts):
            await asyncio.sleep(self._polling_delay)

            response = await client.get(
                operation_url, headers={"Ocp-Apim-Subscription-Key": self._api_key}
            )
            response.raise_for_status()
            result = response.json()
            status = result.get("status")
            logger.debug("Azure Read poll %d: status=%s", attempt + 1, status)

            if status == "succeeded":
                return _build_lines(result)
            if status == "failed":
                raise OcrError("Azure OCR processing failed")

        raise OcrTimeoutError("OCR processing timed out")


def _build_lines(result: dict) -> list[OcrLine]:
    read_results = (result.get("analyzeResult") or {}).get("readResults") or []
    return [
        OcrLine(text=line.get("text", ""), bounding_box=line.get("boundingBox"))
        for page in read_results
        for line in page.get("lines", [])
    ]
