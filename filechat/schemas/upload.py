"""Schemas for the upload endpoint."""

from datetime import datetime

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """Response after storing an uploaded file (it becomes the current file for /chat)."""

    path: str = Field(..., description="Storage path of the saved file, e.g. uploads/report.pdf")
    filename: str = Field(..., description="Stored (sanitized) file name.")
    size_bytes: int = Field(..., description="Number of bytes written.")
    version: int = Field(..., description="Upload counter; increases by one on every successful upload.")

    model_config = {
        "json_schema_extra": {
            "examples": [{"path": "uploads/report.pdf", "filename": "report.pdf", "size_bytes": 18342, "version": 1}]
        }
    }


class CurrentUploadResponse(UploadResponse):
    """The file questions are currently answered against."""

    uploaded_at: datetime = Field(..., description="UTC time the upload completed.")
