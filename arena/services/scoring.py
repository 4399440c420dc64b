from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..models.profile import Profile
from ..models.submission import Submission, SubmissionStatus


def refresh_profile_score(session: Session, user_id: int) -> int:
    """Recompute a profile's aggregate score from its reviewed submissions."""
    total = session.exec(
        select(func.coalesce(func.sum(Submission.score), 0))
        .where(
            (Submission.user_id == user_id) &
            (Submission.status == SubmissionStatus.REVIEWED)
        )
    ).one()

    profile = session.get(Profile, user_id)
    if profile:
        profile.score = int(total)
        session.add(profile)
    return int(total)


def apply_review(
    session: Session,
    submission: Submission,
    status: SubmissionStatus,
    score: Optional[int],
    feedback: Optional[str],
) -> Submission:
    """Record the outcome of a review and keep the author's aggregate score in sync.

    Rejected submissions carry no score. The caller commits.
    """
    submission.status = status
    submission.score = score if status == SubmissionStatus.REVIEWED else None
    submission.feedback = feedback
    submission.reviewed_at = datetime.now(timezone.utc)
    session.add(submission)
    session.flush()

    refresh_profile_score(session, submission.user_id)
    return submission
