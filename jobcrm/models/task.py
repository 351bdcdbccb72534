"""
Task model — follow-up work attached to a JobMatch, manual or auto-generated.
"""
import uuid

from sqlalchemy import Column, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from jobcrm.database import Base


class Task(Base):
    __tablename__ = 'tasks'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    match_id = Column(Text, ForeignKey('job_matches.id'), nullable=False, index=True)
    title = Column(Text, nullable=False)
    category = Column(Text, nullable=True)
    due_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(Text, nullable=True, default='pending')
    auto_generated = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    match = relationship('JobMatch', back_populates='tasks')
