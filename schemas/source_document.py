"""Pydantic model for a fetched and converted web page."""

from pydantic import BaseModel, Field


class SourceDocument(BaseModel):
    url: str
    title: str = ""
    text: str = Field(description="Cleaned markdown-ish text of the page")
    word_count: int = 0
