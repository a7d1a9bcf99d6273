import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, String, Text

from requestline.db.models.base import BaseModel


class RequestStatus(str, enum.Enum):
    """点歌请求状态: New -> Playing -> Archived"""
    NEW = "New"
    PLAYING = "Playing"
    ARCHIVED = "Archived"


# the only legal moves; Archived is terminal
ALLOWED_TRANSITIONS = {
    RequestStatus.NEW: RequestStatus.PLAYING,
    RequestStatus.PLAYING: RequestStatus.ARCHIVED,
}


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return ALLOWED_TRANSITIONS.get(current) == target


class SongRequest(BaseModel):
    """观众提交的点歌请求"""
    __tablename__ = "song_requests"

    # 歌曲名称
    title = Column(String(200), nullable=False)
    # 演唱者
    performer = Column(String(200), nullable=False)
    # 点歌人（可选）
    requester = Column(String(100), nullable=True)
    # 留言（可选）
    message = Column(Text, nullable=True)
    # 提交时间
    submitted_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
    status = Column(
        Enum(
            RequestStatus,
            name="request_status",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=RequestStatus.NEW,
        index=True,
    )

    def __repr__(self):
        return f"<SongRequest {self.id} ({self.title!r} by {self.performer!r}, status={self.status})>"
