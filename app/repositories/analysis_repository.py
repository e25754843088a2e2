"""
AI analysis persistence. One row per (owner_id, cache_key); the unique index backs
the at-most-one-record rule. All operations are sync (run_in_executor from async).
"""
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.ai_analysis import AiAnalysis
from app.services.analysis_keys import Fingerprint


def find_by_key(db: Session, owner_id: str, cache_key: str) -> AiAnalysis | None:
    return (
        db.query(AiAnalysis)
        .filter(AiAnalysis.owner_id == owner_id, AiAnalysis.cache_key == cache_key)
        .first()
    )


def set_slot(
    db: Session,
    fingerprint: Fingerprint,
    *,
    slot_column: str,
    value: Any,
    text_column: str,
    text: str,
    language: str = "",
) -> AiAnalysis:
    """
    Find-or-create the row for `fingerprint`, then set one result slot and its text.
    A concurrent insert of the same key loses on the unique index; we then update the
    winner's row instead of creating a duplicate. Other slots are left untouched.
    """
    cache_key = fingerprint.cache_key
    row = find_by_key(db, fingerprint.owner_id, cache_key)
    if row is None:
        row = AiAnalysis(
            owner_id=fingerprint.owner_id,
            cache_key=cache_key,
            code=fingerprint.code or "",
            language=language or "",
            **fingerprint.scope.columns(),
        )
        setattr(row, slot_column, value)
        setattr(row, text_column, text)
        db.add(row)
        try:
            db.commit()
            db.refresh(row)
            return row
        except IntegrityError:
            db.rollback()
            row = find_by_key(db, fingerprint.owner_id, cache_key)
            if row is None:
                raise
    setattr(row, slot_column, value)
    setattr(row, text_column, text)
    db.commit()
    db.refresh(row)
    return row


class AnalysisRepository:
    """Thin wrapper for dependency injection; delegates to module functions."""

    @staticmethod
    def find_by_key(db: Session, owner_id: str, cache_key: str) -> AiAnalysis | None:
        return find_by_key(db, owner_id, cache_key)

    @staticmethod
    def set_slot(
        db: Session,
        fingerprint: Fingerprint,
        *,
        slot_column: str,
        value: Any,
        text_column: str,
        text: str,
        language: str = "",
    ) -> AiAnalysis:
        return set_slot(
            db, fingerprint,
            slot_column=slot_column,
            value=value,
            text_column=text_column,
            text=text,
            language=language,
        )
