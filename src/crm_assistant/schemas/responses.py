"""Response schemas for the assistant API."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class FragmentEvent(BaseModel):
    """One piece of generated text, relayed as soon as the model produced it."""

    type: Literal["fragment"] = "fragment"
    text: str


class DoneEvent(BaseModel):
    """End-of-stream sentinel, emitted once after a complete generation."""

    type: Literal["done"] = "done"


class ErrorEvent(BaseModel):
    """Terminal failure of the generation."""

    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    FragmentEvent | DoneEvent | ErrorEvent,
    Field(discriminator="type"),
]


class ErrorResponse(BaseModel):
    """Error response returned before streaming begins."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict | list | None = Field(default=None, description="Additional error details")
