"""API request and response models."""
from pydantic import BaseModel, Field


class HistoryMessage(BaseModel):
    role: str = Field(..., description='"user" or "assistant"; anything else is treated as the model')
    content: str = Field(..., description="Message text")


class ChatRequest(BaseModel):
    message: str = Field(..., description="The new user message")
    history: list[HistoryMessage] = Field(..., description="Full conversation so far, oldest first (greeting included)")


class ChatResponse(BaseModel):
    response: str = Field(..., description="Model reply")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Generic failure message")
    details: str = Field(..., description="Message of the underlying failure")
