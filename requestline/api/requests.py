from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from requestline.core.security import get_optional_operator
from requestline.db.session import get_db
from requestline.schemas.auth import OperatorIdentity
from requestline.schemas.song_request import (
    ArchiveView,
    PublicView,
    SongRequestCreate,
    SongRequestResponse,
)
from requestline.services.playback import playback_controller

router = APIRouter()


@router.post("",
             response_model=SongRequestResponse,
             status_code=201,
             summary="提交点歌请求",
             description="观众提交一首歌，状态为New，等待操作员选择",
             responses={
                 400: {
                     "description": "歌曲名称或演唱者为空",
                     "content": {
                         "application/json": {
                             "example": {"detail": "Title and performer are required"}
                         }
                     }
                 }
             })
def submit_request(data: SongRequestCreate, db: Session = Depends(get_db)) -> SongRequestResponse:
    song_request = playback_controller.submit(
        db,
        title=data.title,
        performer=data.performer,
        requester=data.requester,
        message=data.message,
    )
    return SongRequestResponse.model_validate(song_request)


@router.get("/now-playing",
            response_model=PublicView,
            summary="当前播放",
            description="获取正在播放的点歌请求，没有时为null")
def now_playing(
    db: Session = Depends(get_db),
    operator: Optional[OperatorIdentity] = Depends(get_optional_operator),
) -> PublicView:
    return playback_controller.public_view(db, operator)


@router.get("/archive",
            response_model=ArchiveView,
            summary="已播放列表",
            description="正在播放的请求以及按提交时间排序的已播放请求")
def archive_list(
    db: Session = Depends(get_db),
    operator: Optional[OperatorIdentity] = Depends(get_optional_operator),
) -> ArchiveView:
    return playback_controller.archive_view(db, operator)
