from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timedelta, timezone
from enum import Enum
import uuid


class MemoryCategory(str, Enum):
    """Memory categories"""
    FACT = "fact"
    PREFERENCE = "preference"
    NOTE = "note"
    CHECKIN = "checkin"


# Days until a memory of each category expires
MEMORY_TTL_DAYS = {
    MemoryCategory.FACT: 365,
    MemoryCategory.PREFERENCE: 365,
    MemoryCategory.NOTE: 90,
    MemoryCategory.CHECKIN: 7,
}


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are compared as naive UTC; aware values are converted"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def default_expiry(category: MemoryCategory, now: Optional[datetime] = None) -> Optional[datetime]:
    days = MEMORY_TTL_DAYS.get(category, 0)
    if days <= 0:
        return None
    return (now or datetime.utcnow()) + timedelta(days=days)


class MemoryRecord(BaseModel):
    """A persisted fact, preference, note or check-in"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    category: MemoryCategory = Field(default=MemoryCategory.NOTE)
    text: str
    origin: str = Field(default="conversation", description="Where the memory came from")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: Optional[datetime] = None
    embedding: Optional[List[float]] = None
    active: bool = True

    @field_validator("created_at", "updated_at", "expires_at")
    @classmethod
    def _normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else to_naive_utc(value)

    @property
    def short_id(self) -> str:
        return self.id[:8].lower()

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return to_naive_utc(self.expires_at) < to_naive_utc(now or datetime.utcnow())


class ScoredMemory(BaseModel):
    """A memory with its relevance to one query"""
    memory: MemoryRecord
    score: float
    keyword_score: float = 0.0
    semantic_score: float = 0.0
    recency_score: float = 0.0

    @property
    def text(self) -> str:
        return self.memory.text

    @property
    def category(self) -> MemoryCategory:
        return self.memory.category


class IdentityFact(BaseModel):
    """A user attribute, unique per attribute key"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    attribute: str
    value: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamps(cls, value: datetime) -> datetime:
        return to_naive_utc(value)
