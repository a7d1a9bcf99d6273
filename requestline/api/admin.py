from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from requestline.core.config import settings
from requestline.core.security import end_operator_session, require_operator
from requestline.db.repositories import song_request_repository
from requestline.db.session import get_db
from requestline.schemas.auth import OperatorIdentity
from requestline.schemas.song_request import (
    AdminView,
    EndSessionResponse,
    PromoteResponse,
    SongRequestResponse,
    StatisticsResponse,
)
from requestline.services.playback import playback_controller

router = APIRouter()


@router.get("/state",
            response_model=AdminView,
            summary="操作员面板数据",
            description="当前播放、待播队列和已播放列表")
def admin_state(
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
) -> AdminView:
    return playback_controller.admin_view(db, operator)


@router.post("/promote/{request_id}",
             response_model=PromoteResponse,
             summary="播放点歌请求",
             description="将一个New状态的请求设为Playing，之前正在播放的请求自动归档",
             responses={
                 404: {
                     "description": "请求不存在",
                     "content": {"application/json": {"example": {"detail": "Song request 42 not found"}}}
                 },
                 409: {
                     "description": "请求不是New状态",
                     "content": {
                         "application/json": {
                             "example": {"detail": "Song request 42 cannot go from Archived to Playing"}
                         }
                     }
                 }
             })
def promote_request(
    request_id: int,
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
) -> PromoteResponse:
    now_playing, archived = playback_controller.promote(db, request_id)
    return PromoteResponse(
        now_playing=SongRequestResponse.model_validate(now_playing),
        archived=SongRequestResponse.model_validate(archived) if archived else None,
    )


@router.post("/end-session",
             response_model=EndSessionResponse,
             summary="结束播放会话",
             description="归档正在播放的请求并使会话令牌失效；没有正在播放的请求时只结束会话")
def end_session(
    response: Response,
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
) -> EndSessionResponse:
    archived = playback_controller.end_session(db)
    end_operator_session(db, operator)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return EndSessionResponse(
        archived=SongRequestResponse.model_validate(archived) if archived else None,
    )


@router.get("/statistics",
            response_model=StatisticsResponse,
            summary="请求统计",
            description="各状态的请求数量")
def statistics(
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
) -> StatisticsResponse:
    counts = song_request_repository.count_by_status(db)
    return StatisticsResponse(total_requests=sum(counts.values()), counts=counts)
