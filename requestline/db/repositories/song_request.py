import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from requestline.core.errors import NotFound
from requestline.db.models.playback_guard import PLAYBACK_GUARD_ID, PlaybackGuard
from requestline.db.models.song_request import RequestStatus, SongRequest
from requestline.db.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

# (request id, expected current status, new status)
Transition = Tuple[int, RequestStatus, RequestStatus]


class SongRequestRepository(BaseRepository[SongRequest]):
    """点歌请求数据访问层

    The only place status is written. Transition rules live in the playback
    controller; this layer persists whatever it is told to.
    """

    def create(
        self,
        db: Session,
        title: str,
        performer: str,
        requester: Optional[str] = None,
        message: Optional[str] = None,
    ) -> SongRequest:
        """创建点歌请求"""
        song_request = SongRequest(
            title=title,
            performer=performer,
            requester=requester or None,
            message=message or None,
            submitted_at=datetime.now(),
            status=RequestStatus.NEW,
        )
        with self.guard(db, "create"):
            db.add(song_request)
            db.commit()
            db.refresh(song_request)
        return song_request

    def find_by_status(self, db: Session, status: RequestStatus) -> List[SongRequest]:
        """获取指定状态的点歌请求，按提交时间升序"""
        with self.guard(db, "find_by_status"):
            return (
                db.query(SongRequest)
                .filter(SongRequest.status == status)
                .order_by(SongRequest.submitted_at.asc(), SongRequest.id.asc())
                .all()
            )

    def find_one(self, db: Session, request_id: int) -> SongRequest:
        song_request = self.get(db, request_id)
        if song_request is None:
            raise NotFound(request_id)
        return song_request

    def set_status(self, db: Session, request_id: int, status: RequestStatus) -> SongRequest:
        """无条件更新状态"""
        song_request = self.find_one(db, request_id)
        with self.guard(db, "set_status"):
            song_request.status = status  # type: ignore
            db.commit()
            db.refresh(song_request)
        return song_request

    def apply_transitions(self, db: Session, transitions: Sequence[Transition]) -> bool:
        """Compare-and-swap every transition inside one transaction.

        Each step only matches a row still in its expected status. If any step
        matches nothing the whole batch is rolled back and False is returned.
        The batch holds the playback guard row lock, so writers in other
        processes run one after another, and a batch that would leave two
        requests Playing is rolled back too.
        """
        with self.guard(db, "apply_transitions"):
            try:
                self._lock_playback(db)
            except IntegrityError:
                # another process created the guard row first
                db.rollback()
                logger.warning("Playback guard row created concurrently, giving up this batch")
                return False

            for request_id, expected, new in transitions:
                updated = (
                    db.query(SongRequest)
                    .filter(SongRequest.id == request_id, SongRequest.status == expected)
                    .update({SongRequest.status: new}, synchronize_session=False)
                )
                if updated != 1:
                    db.rollback()
                    logger.warning(
                        "Conditional update lost: request %s no longer %s", request_id, expected.value
                    )
                    return False

            if any(new == RequestStatus.PLAYING for _, _, new in transitions):
                playing = (
                    db.query(func.count(SongRequest.id))
                    .filter(SongRequest.status == RequestStatus.PLAYING)
                    .scalar()
                )
                if playing > 1:
                    db.rollback()
                    logger.warning("Conditional update lost: %s requests would be Playing", playing)
                    return False
            db.commit()
        # bulk updates bypass the identity map
        db.expire_all()
        return True

    def _lock_playback(self, db: Session) -> None:
        """Write the guard row so concurrent status writers wait for this transaction."""
        claimed = (
            db.query(PlaybackGuard)
            .filter(PlaybackGuard.id == PLAYBACK_GUARD_ID)
            .update({PlaybackGuard.version: PlaybackGuard.version + 1}, synchronize_session=False)
        )
        if claimed == 0:
            db.add(PlaybackGuard(id=PLAYBACK_GUARD_ID, version=1))
            db.flush()

    def count_by_status(self, db: Session) -> Dict[RequestStatus, int]:
        """各状态统计"""
        with self.guard(db, "count_by_status"):
            rows = db.query(SongRequest.status, func.count(SongRequest.id)).group_by(SongRequest.status).all()
        counts = {status: 0 for status in RequestStatus}
        for status, total in rows:
            counts[RequestStatus(status)] = total
        return counts


song_request_repository = SongRequestRepository(SongRequest)
