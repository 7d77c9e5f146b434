"""Request schemas for the assistant API and the model endpoint."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field


class ConversationTurn(BaseModel):
    """One turn of the conversation held by the client."""

    role: Literal["user", "assistant"]
    content: str = Field(
        ...,
        validation_alias=AliasChoices("content", "text"),
        description="Turn text",
    )


class ChatRequest(BaseModel):
    """Request to the chat endpoint.

    The service is stateless: the client sends the whole conversation so far
    in `history`. Business context is only gathered when `history` is empty.
    """

    message: str = Field(..., min_length=1, description="The user's question")
    history: list[ConversationTurn] = Field(
        default_factory=list,
        description="Previous turns of the conversation, oldest first",
    )


class ModelPart(BaseModel):
    """A text part of a Gemini content entry."""

    text: str


class ModelContent(BaseModel):
    """A role-tagged turn in the format the Gemini API consumes."""

    role: Literal["user", "model"]
    parts: list[ModelPart]

    @classmethod
    def of(cls, role: Literal["user", "model"], text: str) -> "ModelContent":
        return cls(role=role, parts=[ModelPart(text=text)])


class GenerationConfig(BaseModel):
    """Generation parameters sent with every model request."""

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1500, ge=1, serialization_alias="maxOutputTokens")


class GenerateContentRequest(BaseModel):
    """Body of a Gemini streamGenerateContent call."""

    contents: list[ModelContent]
    generation_config: GenerationConfig = Field(
        default_factory=GenerationConfig,
        serialization_alias="generationConfig",
    )
