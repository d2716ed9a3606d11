from pydantic import BaseModel
from typing import Any, Optional

SUCCEEDED = "succeeded"
FAILED = "failed"
CANCELED = "canceled"
TERMINAL_STATUSES = (SUCCEEDED, FAILED, CANCELED)

class GenerateImageRequest(BaseModel):
    prompt: Optional[str] = None

class GenerateImageResponse(BaseModel):
    imageUrl: str

class GenerateCaptionRequest(BaseModel):
    imageUrl: Optional[str] = None

class GenerateCaptionResponse(BaseModel):
    caption: str

class ErrorResponse(BaseModel):
    error: str

class PredictionUrls(BaseModel):
    get: Optional[str] = None
    cancel: Optional[str] = None

class Prediction(BaseModel):
    """A job on the prediction API, as returned by create and get calls."""

    id: Optional[str] = None
    status: str
    output: Any = None
    error: Optional[Any] = None
    urls: PredictionUrls = PredictionUrls()

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED

    def first_output(self) -> Optional[str]:
        value = self.output
        if isinstance(value, list):
            value = value[0] if value else None
        return None if value is None else str(value)

    def output_text(self) -> str:
        # captioning models stream tokens, so output may be a list of fragments
        if self.output is None:
            return ""
        if isinstance(self.output, list):
            # fragments not yet produced while streaming come back as null
            return "".join("" if f is None else str(f) for f in self.output).strip()
        return str(self.output).strip()
