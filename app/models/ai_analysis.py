"""
Cached AI code analysis. One row per (owner, scope, code) fingerprint; the four
result slots fill in independently as different tasks run against the same key.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index, JSON
from app.database import Base


class AiAnalysis(Base):
    __tablename__ = "ai_analyses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    # Scope: either (interview_id, question_id) or problem_id, never both
    interview_id = Column(String(64), nullable=True, index=True)
    question_id = Column(Integer, nullable=True)
    problem_id = Column(String(64), nullable=True, index=True)
    code = Column(Text, nullable=False, default="")
    language = Column(Text, nullable=False, default="")
    cache_key = Column(String(64), nullable=False)  # sha256 of owner + scope (+ code)

    algorithm_analysis = Column(JSON, nullable=True)
    complexity_analysis = Column(JSON, nullable=True)
    optimization_suggestions = Column(JSON, nullable=True)
    test_cases = Column(JSON, nullable=True)

    analysis_text = Column(Text, nullable=True)
    complexity_text = Column(Text, nullable=True)
    optimization_text = Column(Text, nullable=True)
    test_cases_text = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_ai_analyses_owner_key", "owner_id", "cache_key", unique=True),)
