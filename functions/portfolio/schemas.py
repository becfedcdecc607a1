"""
Pydantic schemas for the JSON API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    auth: bool
    database: bool


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(default="", max_length=8000)
    max_tokens: int = Field(default=800, ge=1, le=8192, alias="maxTokens")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_text: str = Field(serialization_alias="generatedText")


class ProjectSummary(BaseModel):
    id: str
    title: str
    description: str
    image: str
    tags: list[str]
    category: str
    is_premium: bool
    created_at: float


class ListProjectsResponse(BaseModel):
    projects: list[ProjectSummary]
    categories: list[str]
    total: int


class NewsletterRequest(BaseModel):
    email: str = Field(default="", max_length=320)


class NewsletterResponse(BaseModel):
    status: Literal["subscribed", "already_subscribed"]
    message: str
