"""Topic-related Pydantic schemas."""

from pydantic import BaseModel


class Topic(BaseModel):
    id: str
    label: str
    category: str


class TopicCatalog(BaseModel):
    categories: list[str]
    subjects: list[Topic]
