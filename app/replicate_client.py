# app/replicate_client.py
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .config import Settings
from .models import Prediction

logger = logging.getLogger(__name__)


class ProxyError(Exception):
    """Base for errors that map onto an HTTP response status."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidArgument(ProxyError):
    status_code = 400


class MissingCredential(ProxyError):
    def __init__(self):
        super().__init__("REPLICATE_API_TOKEN is not set.")


class UpstreamError(ProxyError):
    pass


class JobFailed(ProxyError):
    pass


class PollTimeout(ProxyError):
    status_code = 504


class FetchError(ProxyError):
    pass


def _detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return body.get("detail")
    return body


class ReplicateClient:
    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        if not settings.api_token:
            raise MissingCredential()
        self.http = http
        self.settings = settings
        self.headers = {
            "Authorization": f"Bearer {settings.api_token}",
            "Content-Type": "application/json",
        }

    async def create_prediction(self, version: str, input: Dict[str, Any]) -> Prediction:
        response = await self.http.post(
            self.settings.predictions_url,
            headers=self.headers,
            json={"version": version, "input": input},
        )
        if response.status_code != 201:
            raise UpstreamError(f"API error: {_detail(response)}", response.status_code)
        prediction = Prediction.model_validate(response.json())
        logger.info("created prediction %s (status=%s)", prediction.id, prediction.status)
        return prediction

    async def get_prediction(self, url: str) -> Prediction:
        response = await self.http.get(url, headers=self.headers)
        if response.status_code != 200:
            raise UpstreamError(f"Polling failed: {_detail(response)}", response.status_code)
        return Prediction.model_validate(response.json())


async def fetch_image(http: httpx.AsyncClient, url: str) -> Tuple[bytes, Optional[str]]:
    """Download url and return its raw body and Content-Type header."""
    try:
        response = await http.get(url, follow_redirects=True)
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch image: {e}") from e
    if not response.is_success:
        raise FetchError(f"Failed to fetch image: {response.reason_phrase}")
    return response.content, response.headers.get("content-type")
