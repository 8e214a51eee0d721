"""Match-related Pydantic schemas."""

from pydantic import BaseModel, Field

from peertutor.schemas.user import UserPublic


class MatchProfile(BaseModel):
    """The slice of a user the matcher reads."""
    id: str
    skills: list[str] = Field(default_factory=list)
    needs: list[str] = Field(default_factory=list)
    blocked: list[str] = Field(default_factory=list)


class MatchOut(BaseModel):
    user: UserPublic
    score: int


class MatchNotifyResponse(BaseModel):
    matched_user_id: str
    score: int
