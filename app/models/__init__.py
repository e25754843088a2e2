from app.models.user import User, UserRole
from app.models.interview import Interview, InterviewStatus
from app.models.ai_analysis import AiAnalysis

__all__ = ["User", "UserRole", "Interview", "InterviewStatus", "AiAnalysis"]
