import logging
from contextlib import contextmanager
from typing import Generic, Iterator, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from requestline.core.errors import StoreUnavailable
from requestline.db.models.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """通用数据访问层"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    @contextmanager
    def guard(self, db: Session, action: str) -> Iterator[None]:
        """Roll back and report StoreUnavailable when the database fails."""
        try:
            yield
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("%s failed on %s: %s", action, self.model.__tablename__, exc)
            raise StoreUnavailable(f"{action} failed on {self.model.__tablename__}") from exc

    def get(self, db: Session, id: int) -> Optional[ModelType]:
        with self.guard(db, "get"):
            return db.query(self.model).filter(self.model.id == id).first()
