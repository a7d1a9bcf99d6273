"""Playback controller: the request lifecycle state machine.

Requests move New -> Playing -> Archived and at most one request is Playing
at any time. Every status change goes through this module; the repository
only persists what it is told.
"""
import logging
import threading
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from requestline.core.config import settings
from requestline.core.errors import InvalidSubmission, InvalidTransition, InvariantViolation
from requestline.db.models.song_request import RequestStatus, SongRequest, can_transition
from requestline.db.repositories.song_request import SongRequestRepository, Transition, song_request_repository
from requestline.schemas.auth import OperatorIdentity
from requestline.schemas.song_request import AdminView, ArchiveView, PublicView, SongRequestResponse
from requestline.services.sanitizer import sanitize_optional, sanitize_text

logger = logging.getLogger(__name__)


class PlaybackController:

    def __init__(self, store: SongRequestRepository):
        self.store = store
        # serializes promote/end_session inside this process; the store's
        # conditional update and its guard row cover writers in other processes
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ commands

    def submit(
        self,
        db: Session,
        title: str,
        performer: str,
        requester: Optional[str] = None,
        message: Optional[str] = None,
    ) -> SongRequest:
        """Store a new audience request in state New."""
        clean_title = sanitize_text(title, settings.MAX_TITLE_LENGTH)
        clean_performer = sanitize_text(performer, settings.MAX_PERFORMER_LENGTH)
        if not clean_title or not clean_performer:
            raise InvalidSubmission()

        song_request = self.store.create(
            db,
            title=clean_title,
            performer=clean_performer,
            requester=sanitize_optional(requester, settings.MAX_REQUESTER_LENGTH),
            message=sanitize_optional(message, settings.MAX_MESSAGE_LENGTH),
        )
        logger.info("Request %s submitted: %r by %r", song_request.id, song_request.title, song_request.performer)
        return song_request

    def promote(self, db: Session, request_id: int) -> Tuple[SongRequest, Optional[SongRequest]]:
        """Make a New request the one Playing, archiving whatever played before.

        Returns ``(now_playing, archived)``. Raises NotFound for an unknown id
        and InvalidTransition when the request is not New or another writer got
        there first; in both cases nothing is changed.
        """
        with self._lock:
            target = self.store.find_one(db, request_id)
            if not can_transition(target.status, RequestStatus.PLAYING):
                raise InvalidTransition(request_id, target.status.value, RequestStatus.PLAYING.value)

            previous = self._playing(db)
            transitions: List[Transition] = []
            if previous is not None:
                transitions.append((previous.id, RequestStatus.PLAYING, RequestStatus.ARCHIVED))
            transitions.append((target.id, RequestStatus.NEW, RequestStatus.PLAYING))

            if not self.store.apply_transitions(db, transitions):
                current = self.store.find_one(db, request_id)
                raise InvalidTransition(request_id, current.status.value, RequestStatus.PLAYING.value)

        if previous is not None:
            logger.info("Request %s archived", previous.id)
        logger.info("Request %s now playing: %r by %r", target.id, target.title, target.performer)
        return target, previous

    def end_session(self, db: Session) -> Optional[SongRequest]:
        """Archive the Playing request, if there is one. Safe to repeat."""
        with self._lock:
            playing = self._playing(db)
            if playing is None:
                return None
            if not self.store.apply_transitions(db, [(playing.id, RequestStatus.PLAYING, RequestStatus.ARCHIVED)]):
                # someone else archived it in the meantime, which is the outcome we wanted
                return None

        logger.info("Request %s archived at end of session", playing.id)
        return playing

    # ------------------------------------------------------------------ queries

    def currently_playing(self, db: Session) -> Optional[SongRequest]:
        return self._playing(db)

    def pending_queue(self, db: Session) -> List[SongRequest]:
        return self.store.find_by_status(db, RequestStatus.NEW)

    def archive_history(self, db: Session) -> List[SongRequest]:
        return self.store.find_by_status(db, RequestStatus.ARCHIVED)

    def _playing(self, db: Session) -> Optional[SongRequest]:
        playing = self.store.find_by_status(db, RequestStatus.PLAYING)
        if len(playing) > 1:
            ids = ", ".join(str(item.id) for item in playing)
            raise InvariantViolation(f"{len(playing)} requests are Playing at once: {ids}")
        return playing[0] if playing else None

    # ------------------------------------------------------------------ view models

    def public_view(self, db: Session, operator: Optional[OperatorIdentity] = None) -> PublicView:
        return PublicView(
            now_playing=_to_response(self.currently_playing(db)),
            **_auth_fields(operator),
        )

    def archive_view(self, db: Session, operator: Optional[OperatorIdentity] = None) -> ArchiveView:
        return ArchiveView(
            now_playing=_to_response(self.currently_playing(db)),
            archive_history=[SongRequestResponse.model_validate(item) for item in self.archive_history(db)],
            **_auth_fields(operator),
        )

    def admin_view(self, db: Session, operator: OperatorIdentity) -> AdminView:
        return AdminView(
            now_playing=_to_response(self.currently_playing(db)),
            pending_queue=[SongRequestResponse.model_validate(item) for item in self.pending_queue(db)],
            archive_history=[SongRequestResponse.model_validate(item) for item in self.archive_history(db)],
            **_auth_fields(operator),
        )


def _to_response(song_request: Optional[SongRequest]) -> Optional[SongRequestResponse]:
    if song_request is None:
        return None
    return SongRequestResponse.model_validate(song_request)


def _auth_fields(operator: Optional[OperatorIdentity]) -> dict:
    return {
        "is_authenticated": operator is not None,
        "operator_name": operator.display_name if operator else None,
    }


playback_controller = PlaybackController(song_request_repository)
