"""Schemas for the query endpoints."""

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Request body for POST /query. Always answered against the most recent upload."""

    question: str = Field(..., min_length=1, description="Question about the uploaded file.")


class QueryResponse(BaseModel):
    """Response for POST /query."""

    answer: str = Field(..., description="Answer text, verbatim from the answering function.")
    path: str = Field(..., description="Storage path of the file the answer was produced from.")
    version: int = Field(..., description="Upload version the answer was produced from.")
