from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.errors import Forbidden, NotFound, ValidationError
from app.database import get_db
from app.models.interview import Interview, InterviewStatus
from app.models.user import User
from app.auth import get_current_user
from app.schemas.interview import (
    InterviewCreate,
    InterviewEnvelope,
    InterviewListEnvelope,
    InterviewResponse,
    InterviewUpdate,
)

router = APIRouter(prefix="/api/interviews", tags=["interviews"])

DEFAULT_DURATION = 60


def _parse_date(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_interview_input(title: str | None, date: str | None, duration: int | None = None) -> datetime:
    errors = {}
    if not title or len(title.strip()) < 3:
        errors["title"] = "Title must be at least 3 characters long"
    parsed = None
    if not date:
        errors["date"] = "Interview date is required"
    else:
        parsed = _parse_date(date)
        if parsed is None:
            errors["date"] = "Invalid date format"
    if duration is not None and duration < 1:
        errors["duration"] = "Duration must be a positive number"
    if errors:
        raise ValidationError("Validation failed", errors)
    return parsed


def _get_owned_interview(db: Session, interview_id: str, user: User, action: str) -> Interview:
    interview = db.query(Interview).filter(Interview.id == interview_id).first()
    if not interview:
        raise NotFound("Interview not found")
    if interview.user_id != user.id:
        raise Forbidden(f"Not authorized to {action} this interview")
    return interview


def _envelope(interview: Interview) -> InterviewEnvelope:
    return InterviewEnvelope(data=InterviewResponse.model_validate(interview))


def upsert_question(questions: list[dict], body: InterviewUpdate) -> list[dict]:
    """Update the question with body.question_id in place, or append a new one."""
    updated = [dict(q) for q in questions]
    fields = {
        "question": body.question,
        "answer": body.answer,
        "score": body.score,
        "timeTaken": body.time_taken,
    }
    for q in updated:
        if q.get("questionId") == body.question_id:
            q.update({k: v for k, v in fields.items() if v is not None})
            return updated
    new_question = {
        "question": body.question or "Untitled Question",
        "answer": body.answer or "",
        "score": body.score or 0,
        "questionId": body.question_id,
    }
    if body.time_taken is not None:
        new_question["timeTaken"] = body.time_taken
    updated.append(new_question)
    return updated


@router.get("", response_model=InterviewListEnvelope)
def get_interviews(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """All interviews of the current user, newest first."""
    interviews = (
        db.query(Interview)
        .filter(Interview.user_id == user.id)
        .order_by(Interview.created_at.desc())
        .all()
    )
    return InterviewListEnvelope(
        count=len(interviews),
        data=[InterviewResponse.model_validate(i) for i in interviews],
    )


@router.post("", response_model=InterviewEnvelope, status_code=status.HTTP_201_CREATED)
def create_interview(
    body: InterviewCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    date = validate_interview_input(body.title, body.date, body.duration)
    interview = Interview(
        user_id=user.id,
        title=body.title.strip(),
        date=date,
        status=(body.status or InterviewStatus.SCHEDULED).value,
        duration=body.duration or DEFAULT_DURATION,
        questions=[q.model_dump(by_alias=True, exclude_none=True) for q in body.questions or []],
        feedback=body.feedback or "",
    )
    db.add(interview)
    db.commit()
    db.refresh(interview)
    return _envelope(interview)


@router.get("/job/{job_id}", response_model=InterviewEnvelope)
def get_or_create_interview_by_job(
    job_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Interview created from a job posting; created on first access."""
    interview = (
        db.query(Interview)
        .filter(Interview.user_id == user.id, Interview.job_id == job_id)
        .first()
    )
    if not interview:
        now = datetime.utcnow()
        interview = Interview(
            user_id=user.id,
            title=f"Job Interview - {now.strftime('%m/%d/%Y')}",
            date=now,
            status=InterviewStatus.PENDING.value,
            duration=DEFAULT_DURATION,
            questions=[],
            feedback="",
            job_id=job_id,
        )
        db.add(interview)
        db.commit()
        db.refresh(interview)
    return _envelope(interview)


@router.get("/{interview_id}", response_model=InterviewEnvelope)
def get_interview(
    interview_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _envelope(_get_owned_interview(db, interview_id, user, "access"))


@router.put("/{interview_id}", response_model=InterviewEnvelope)
def update_interview(
    interview_id: str,
    body: InterviewUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = _get_owned_interview(db, interview_id, user, "update")

    if body.title or body.date:
        date = validate_interview_input(
            body.title or interview.title,
            body.date or interview.date.isoformat(),
            body.duration,
        )
        if body.title:
            interview.title = body.title.strip()
        if body.date:
            interview.date = date
    elif body.duration is not None and body.duration < 1:
        raise ValidationError("Validation failed", {"duration": "Duration must be a positive number"})

    if body.status:
        interview.status = body.status.value
    if body.duration:
        interview.duration = body.duration
    if body.feedback is not None:
        interview.feedback = body.feedback

    if body.question_id is not None:
        interview.questions = upsert_question(interview.questions or [], body)
    elif body.questions is not None:
        interview.questions = [q.model_dump(by_alias=True, exclude_none=True) for q in body.questions]

    db.commit()
    db.refresh(interview)
    return _envelope(interview)


@router.delete("/{interview_id}")
def delete_interview(
    interview_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = _get_owned_interview(db, interview_id, user, "delete")
    db.delete(interview)
    db.commit()
    return {"success": True, "message": "Interview deleted successfully"}
