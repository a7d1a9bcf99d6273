from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from requestline.core.config import settings
from requestline.db.models.song_request import RequestStatus
from requestline.schemas.base import BaseSchema


class SongRequestCreate(BaseModel):
    """提交点歌请求"""
    title: str = Field(..., min_length=1, max_length=settings.MAX_TITLE_LENGTH, description="歌曲名称")
    performer: str = Field(..., min_length=1, max_length=settings.MAX_PERFORMER_LENGTH, description="演唱者")
    requester: Optional[str] = Field(None, max_length=settings.MAX_REQUESTER_LENGTH, description="点歌人")
    message: Optional[str] = Field(None, max_length=settings.MAX_MESSAGE_LENGTH, description="留言")


class SongRequestResponse(BaseSchema):
    id: int
    title: str
    performer: str
    requester: Optional[str] = None
    message: Optional[str] = None
    submitted_at: datetime
    status: RequestStatus


class PublicView(BaseSchema):
    now_playing: Optional[SongRequestResponse] = None
    is_authenticated: bool = False
    operator_name: Optional[str] = None


class ArchiveView(PublicView):
    archive_history: List[SongRequestResponse] = []


class AdminView(ArchiveView):
    pending_queue: List[SongRequestResponse] = []


class PromoteResponse(BaseSchema):
    now_playing: SongRequestResponse
    archived: Optional[SongRequestResponse] = None


class EndSessionResponse(BaseSchema):
    archived: Optional[SongRequestResponse] = None


class StatisticsResponse(BaseSchema):
    """各状态请求数量"""
    total_requests: int
    counts: Dict[RequestStatus, int]
