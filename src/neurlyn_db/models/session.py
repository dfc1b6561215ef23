"""AssessmentSessionRow ORM model — single row per assessment session.

The whole ``SessionState`` is stored as one JSONB document so the service
can fetch a single row, rebuild the state with ``model_validate``, and hand
it to the engine without touching other tables.  A few fields are copied
into dedicated columns for filtering.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, SmallInteger, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from neurlyn_db.models.base import Base
from neurlyn_db.models.enums import SessionStatus


class AssessmentSessionRow(Base):
    """One row per adaptive assessment session."""

    __tablename__ = "assessment_sessions"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    # Engine-assigned (or caller-supplied) session identifier
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # --- Lifecycle ---
    tier: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[SessionStatus] = mapped_column(
        # Store as the lowercase string value, not the Python name
        String(20),
        nullable=False,
        default=SessionStatus.IN_PROGRESS,
        index=True,
    )
    # Responses recorded so far (mirrors len(state["responses"]))
    response_count: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)

    # --- Serialized engine state ---
    # SessionState.model_dump(mode="json")
    state: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    # --- Final report ---
    # Written once when status transitions to "completed".
    report: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # --- Table-level constraints ---
    __table_args__ = (
        CheckConstraint(
            "tier IN ('quick', 'standard', 'deep')",
            name="tier",
        ),
        # Completed sessions must have a report payload
        CheckConstraint(
            "status != 'completed' OR report IS NOT NULL",
            name="completed_has_report",
        ),
        Index("ix_assessment_sessions_state_gin", "state", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return (
            f"<AssessmentSessionRow(id={self.id!s}, session={self.session_id!r}, "
            f"tier={self.tier!r}, status={self.status!r}, "
            f"responses={self.response_count})>"
        )
