# app/main.py
import logging
from typing import Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import Settings, get_settings
from .models import (
    GenerateCaptionRequest,
    GenerateCaptionResponse,
    GenerateImageRequest,
    GenerateImageResponse,
)
from .replicate_client import InvalidArgument, ProxyError, ReplicateClient
from .tasks import proxy_image, submit_caption_job, submit_image_job

settings = get_settings()

logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

app = FastAPI(title="Replicate Image Proxy")

# The frontend runs on its own dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def get_http_client(settings: Settings = Depends(get_settings)):
    async with httpx.AsyncClient(timeout=settings.http_timeout) as http:
        yield http


def get_replicate_client(
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> ReplicateClient:
    return ReplicateClient(http, settings)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    # exc_info carries the traceback of whatever unexpected error was wrapped
    logger.error(
        "%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message,
        exc_info=exc.__cause__,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _validation_message(errors) -> str:
    if errors and errors[0].get("type") == "json_invalid":
        return "Request body must be valid JSON."
    parts = []
    for error in errors:
        # loc starts with "body" or "query"
        field = ".".join(str(p) for p in error.get("loc", ())[1:]) or "body"
        parts.append(f"{field}: {error.get('msg')}")
    return "; ".join(parts) or "Invalid request."


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc.errors())
    logger.error("%s %s -> 400: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


@app.on_event("startup")
async def startup_event():
    current = get_settings()
    logger.info("Server is running at http://localhost:%d", current.port)
    if not current.api_token:
        logger.warning("Ensure you have set your REPLICATE_API_TOKEN in a .env file or as an environment variable.")


@app.post("/api/generate-image", response_model=GenerateImageResponse)
async def generate_image(
    payload: Optional[GenerateImageRequest] = None,
    client: ReplicateClient = Depends(get_replicate_client),
):
    prompt = payload.prompt if payload else None
    try:
        image_url = await submit_image_job(client, prompt)
    except ProxyError:
        raise
    except Exception as e:
        raise ProxyError(f"An internal server error occurred: {e}") from e
    return {"imageUrl": image_url}


@app.post("/api/generate-caption", response_model=GenerateCaptionResponse)
async def generate_caption(
    payload: Optional[GenerateCaptionRequest] = None,
    client: ReplicateClient = Depends(get_replicate_client),
):
    image_url = payload.imageUrl if payload else None
    try:
        caption = await submit_caption_job(client, image_url)
    except ProxyError:
        raise
    except Exception as e:
        raise ProxyError(f"An internal server error occurred: {e}") from e
    return {"caption": caption}


@app.get("/api/image-proxy")
async def image_proxy(
    url: Optional[str] = Query(None),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    # Lets the browser draw remote images onto a canvas without tainting it
    try:
        content, content_type = await proxy_image(http, url)
    except InvalidArgument as e:
        return PlainTextResponse(e.message, status_code=400)
    except Exception as e:
        logger.error("Image proxy error: %s", e)
        return PlainTextResponse("Failed to fetch image", status_code=500)
    # set as a raw header so text/* types are not given a charset
    headers = {"content-type": content_type} if content_type else None
    return Response(content=content, headers=headers)


def run():
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
