"""
JobPosting model — one row per job posting, manual or ingested.

Ingested postings are deduplicated by external_id (the board's job id).
"""
import uuid

from sqlalchemy import Column, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func

from jobcrm.database import Base


class JobPosting(Base):
    __tablename__ = 'job_postings'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    source_id = Column(Text, ForeignKey('job_sources.id'), nullable=True)
    external_id = Column(Text, nullable=True, unique=True)
    owner_id = Column(Text, ForeignKey('users.id'), nullable=True)
    company = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    remote = Column(Boolean, nullable=True)
    job_type = Column(Text, nullable=True)
    seniority = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    keywords = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
