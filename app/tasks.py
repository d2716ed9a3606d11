# app/tasks.py
import asyncio
import logging
import time

from .models import Prediction
from .replicate_client import (
    InvalidArgument,
    JobFailed,
    PollTimeout,
    ReplicateClient,
    UpstreamError,
    fetch_image,
)

logger = logging.getLogger(__name__)


async def wait_for_prediction(client: ReplicateClient, prediction: Prediction) -> Prediction:
    """
    Poll a prediction until it reaches a terminal status.
    Sleeps a constant interval between checks and re-fetches from the status
    URL the API handed back. Without a configured poll timeout this only
    returns on a terminal status or a failed poll.
    """
    interval = client.settings.poll_interval
    timeout = client.settings.poll_timeout
    started = time.monotonic()

    while not prediction.is_terminal:
        if timeout is not None and time.monotonic() - started >= timeout:
            raise PollTimeout(f"Polling timed out after {timeout:g} seconds")
        await asyncio.sleep(interval)
        poll_url = prediction.urls.get
        if not poll_url:
            raise UpstreamError("Polling failed: prediction has no status URL", 502)
        prediction = await client.get_prediction(poll_url)
        logger.debug("prediction %s status=%s", prediction.id, prediction.status)

    return prediction


async def submit_image_job(client: ReplicateClient, prompt: str) -> str:
    if not prompt:
        raise InvalidArgument("Prompt is required.")

    prediction = await client.create_prediction(
        client.settings.image_model_version, {"prompt": prompt}
    )
    prediction = await wait_for_prediction(client, prediction)
    if not prediction.succeeded:
        raise JobFailed(f"Image generation failed: {prediction.error or prediction.status}")

    image_url = prediction.first_output()
    if not image_url:
        raise JobFailed("Image generation failed: prediction returned no output")
    return image_url


async def submit_caption_job(client: ReplicateClient, image_url: str) -> str:
    if not image_url:
        raise InvalidArgument("imageUrl is required.")

    prediction = await client.create_prediction(
        client.settings.caption_model_version,
        {"image": image_url, "prompt": client.settings.caption_prompt},
    )
    prediction = await wait_for_prediction(client, prediction)
    if not prediction.succeeded:
        raise JobFailed(f"Caption generation failed: {prediction.error or prediction.status}")
    return prediction.output_text()


async def proxy_image(http, url: str):
    if not url:
        raise InvalidArgument("Image URL is required")
    return await fetch_image(http, url)
