"""
JobSource model — one row per ingested job board, keyed by name ("Greenhouse:<token>").
"""
import uuid

from sqlalchemy import Column, Text, DateTime
from sqlalchemy.sql import func

from jobcrm.database import Base


class JobSource(Base):
    __tablename__ = 'job_sources'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False, unique=True)
    url = Column(Text, default='')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
