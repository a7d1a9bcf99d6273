from sqlalchemy import Column, Integer

from requestline.db.models.base import BaseModel

# the single row every status writer locks before changing who is Playing
PLAYBACK_GUARD_ID = 1


class PlaybackGuard(BaseModel):
    """播放状态写锁"""
    __tablename__ = "playback_guard"

    version = Column(Integer, nullable=False, default=0)
