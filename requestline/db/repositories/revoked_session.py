import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from requestline.db.models.revoked_session import RevokedSession
from requestline.db.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class RevokedSessionRepository(BaseRepository[RevokedSession]):
    """已结束会话数据访问层"""

    def revoke(self, db: Session, session_id: str, operator_id: str, expires_at: datetime) -> None:
        """记录已结束的会话，并清理已经过期的记录"""
        now = _utc_naive(datetime.now(timezone.utc))
        with self.guard(db, "revoke"):
            db.query(RevokedSession).filter(RevokedSession.expires_at < now).delete(synchronize_session=False)
            exists = db.query(RevokedSession.id).filter(RevokedSession.session_id == session_id).first()
            if exists is None:
                db.add(RevokedSession(
                    session_id=session_id,
                    operator_id=operator_id,
                    expires_at=_utc_naive(expires_at),
                ))
            db.commit()
        logger.info("Session of operator %s revoked", operator_id)

    def is_revoked(self, db: Session, session_id: str) -> bool:
        with self.guard(db, "is_revoked"):
            return db.query(RevokedSession.id).filter(RevokedSession.session_id == session_id).first() is not None


revoked_session_repository = RevokedSessionRepository(RevokedSession)
