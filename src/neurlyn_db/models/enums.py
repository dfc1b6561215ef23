"""Database-level enumerations for assessment sessions."""

import enum


class SessionStatus(str, enum.Enum):
    """Lifecycle states for an assessment session.

    Transitions:
        in_progress -> completed (finalized, report written)
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
