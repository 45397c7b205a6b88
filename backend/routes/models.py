"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field


class SelectChoice(BaseModel):
    index: int = Field(ge=0)
