"""Shared-file Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel


class FileOut(BaseModel):
    id: str
    community_id: str
    channel_id: str | None
    uploaded_by: str
    file_name: str
    file_type: str
    file_size: int
    download_url: str
    description: str
    tags: list[str]
    uploaded_at: datetime

    model_config = {"from_attributes": True}
