"""Async repository for the ``assessment_sessions`` table.

Every method takes the caller's ``AsyncSession`` and only flushes; the
caller decides when to commit.  State and report payloads go in and come
out as JSON-compatible dicts, and converting them to engine models is left
to :mod:`neurlyn_engine.service`.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from neurlyn_db.models.enums import SessionStatus
from neurlyn_db.models.session import AssessmentSessionRow

logger = logging.getLogger(__name__)


def _response_count(state: dict[str, Any]) -> int:
    return len(state.get("responses", []))


class SessionRepository:
    """Create, load, save and complete stored assessment sessions."""

    async def create_session(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        tier: str,
        state: dict[str, Any],
    ) -> AssessmentSessionRow:
        """Insert an in-progress row holding the initial state."""
        row = AssessmentSessionRow(
            session_id=session_id,
            tier=tier,
            status=SessionStatus.IN_PROGRESS,
            state=dict(state),
            response_count=_response_count(state),
        )
        db.add(row)
        await db.flush()
        logger.debug("Stored new session %s (tier=%s)", session_id, tier)
        return row

    async def get_by_session_id(
        self, db: AsyncSession, session_id: str
    ) -> AssessmentSessionRow | None:
        stmt = select(AssessmentSessionRow).where(
            AssessmentSessionRow.session_id == session_id
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def save_state(
        self,
        db: AsyncSession,
        row: AssessmentSessionRow,
        state: dict[str, Any],
    ) -> AssessmentSessionRow:
        """Replace the stored state after an engine step.

        A fresh dict is assigned so the JSONB column is marked dirty.
        """
        row.state = dict(state)
        row.response_count = _response_count(state)
        row.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return row

    async def complete_session(
        self,
        db: AsyncSession,
        row: AssessmentSessionRow,
        state: dict[str, Any],
        report: dict[str, Any],
    ) -> AssessmentSessionRow:
        """Store the final state and report and mark the row completed.

        ``ck_assessment_sessions_completed_has_report`` rejects a completed
        row without a report.
        """
        now = datetime.now(timezone.utc)
        row.state = dict(state)
        row.response_count = _response_count(state)
        row.status = SessionStatus.COMPLETED
        row.report = dict(report)
        row.completed_at = now
        row.updated_at = now
        await db.flush()
        logger.info(
            "Session %s completed with %d responses", row.session_id, row.response_count
        )
        return row
