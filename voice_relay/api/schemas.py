from typing import Optional

from pydantic import BaseModel, Field


class TextTransformRequest(BaseModel):
    text: str = Field(..., description="Text to process.")
    language: Optional[str] = Field(
        None,
        description="One of en, ja, zh-TW, id, vi, th. Anything else uses Traditional Chinese.",
    )


class TextResponse(BaseModel):
    text: str = Field(..., description="Transcript or extracted document text.")


class SummarizeResponse(BaseModel):
    summarizedText: str


class HighlightResponse(BaseModel):
    highlightedText: str


class PolishResponse(BaseModel):
    polishedText: str


class ClientConfigResponse(BaseModel):
    apiKeyGoogle: Optional[str] = None
    openAIKey: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
