"""Topic endpoints - the subject catalog used for skills and needs."""

from fastapi import APIRouter

from peertutor.errors import NotFoundError
from peertutor.schemas.topic import Topic
from peertutor.services.topic_service import topic_service

router = APIRouter()


@router.get("/", response_model=list[Topic])
async def list_topics(category: str | None = None):
    return topic_service.list_topics(category)


@router.get("/categories", response_model=list[str])
async def list_categories():
    return topic_service.categories()


@router.get("/{topic_id}", response_model=Topic)
async def get_topic(topic_id: str):
    topic = topic_service.get_topic(topic_id)
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic
