from pydantic import BaseModel
from typing import Optional
from enum import Enum

class HifzStatus(str, Enum):
    NOT_STARTED = "not_started"
    LEARNING = "learning"
    MEMORIZED = "memorized"
    REVIEW = "review"

class RecallRating(str, Enum):
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

class MemorizationRecord(BaseModel):
    user_id: int
    surah_id: int
    ayah_number: int
    status: HifzStatus = HifzStatus.NOT_STARTED
    srs_level: int = 0
    last_reviewed: Optional[str] = None  # "YYYY-MM-DD HH:MM:SS" UTC
    next_review: Optional[str] = None

    class Config:
        from_attributes = True
