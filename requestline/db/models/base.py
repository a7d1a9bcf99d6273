from datetime import datetime

from sqlalchemy import Column, DateTime, Integer

from requestline.db.session import Base


class BaseModel(Base):
    """所有表共用的主键与时间戳"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
