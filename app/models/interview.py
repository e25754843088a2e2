"""Mock interview session owned by one user. Questions are stored inline as a JSON list."""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, JSON
from app.database import Base


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    COMPLETED = "completed"


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=InterviewStatus.SCHEDULED.value)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    # [{"question", "answer", "score", "questionId", "timeTaken"}]
    questions = Column(JSON, nullable=False, default=list)
    feedback = Column(Text, nullable=False, default="")
    job_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
