"""Request models for the studio API."""

from pydantic import BaseModel, Field


class FilterSelection(BaseModel):
    """Body for choosing the active filter."""

    name: str = Field(min_length=1)
