"""
JobMatch model — the persisted Lead: one user's relationship to one posting.

`status` is free text on purpose; the projection maps it onto the six
canonical stages. user_id is NULL for global leads created by ingestion.
"""
import uuid

from sqlalchemy import Column, Integer, Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from jobcrm.database import Base


class JobMatch(Base):
    __tablename__ = 'job_matches'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    posting_id = Column(Text, ForeignKey('job_postings.id'), nullable=False, index=True)
    user_id = Column(Text, ForeignKey('users.id'), nullable=True, index=True)
    status = Column(Text, nullable=False, default='Prospecting')
    priority = Column(Text, nullable=False, default='medium')
    fit_score = Column(Integer, nullable=True)        # 0-100
    tags = Column(JSON, nullable=True)
    notes = Column(JSON, nullable=True)
    last_touchpoint = Column(DateTime(timezone=True), server_default=func.now())
    follow_up_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    posting = relationship('JobPosting', lazy='joined')
    tasks = relationship('Task', back_populates='match', order_by='Task.due_at')
