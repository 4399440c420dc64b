"""In-memory reductions behind the company and participant dashboards."""

import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ..models.challenge import Challenge, days_until, as_utc
from ..models.challenge_participant import ChallengeParticipant
from ..models.profile import Profile
from ..models.submission import Submission, SubmissionStatus
from .leaderboard import display_name

HIGH_SCORE_THRESHOLD = 80
DASHBOARD_LIMIT = 3


def average_score(submissions: Iterable[Submission]) -> float:
    """Mean of the non-null scores, rounded to one decimal. 0 when nothing is scored."""
    scores = [submission.score for submission in submissions if submission.score is not None]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


def company_stats(
    challenges: List[Challenge],
    submissions: List[Submission],
    participants: List[ChallengeParticipant],
) -> dict:
    return {
        "active_challenges": len(challenges),
        "total_submissions": len(submissions),
        "candidates_engaged": len({participant.user_id for participant in participants}),
        "average_score": average_score(submissions),
    }


def candidate_summaries(
    submissions: List[Submission],
    profiles_by_id: Dict[int, Profile],
) -> List[dict]:
    by_user: Dict[int, List[Submission]] = {}
    for submission in submissions:
        by_user.setdefault(submission.user_id, []).append(submission)

    candidates = []
    for user_id, user_submissions in by_user.items():
        profile = profiles_by_id.get(user_id)
        scores = [s.score for s in user_submissions if s.score is not None]
        candidates.append({
            "user_id": user_id,
            "user_name": display_name(profile),
            "user_avatar": profile.avatar_url if profile else None,
            "email": profile.email if profile else None,
            "submissions": len(user_submissions),
            "best_score": max(scores) if scores else None,
            "average_score": average_score(user_submissions),
        })
    candidates.sort(key=lambda c: (c["best_score"] is None, -(c["best_score"] or 0), c["user_id"]))
    return candidates


def submission_progress(submission: Optional[Submission]) -> int:
    if submission is None:
        return 0
    return 100 if submission.status == SubmissionStatus.REVIEWED else 50


def active_challenges(
    challenges: List[Challenge],
    submissions_by_challenge: Dict[int, Submission],
    now: Optional[datetime] = None,
    limit: int = DASHBOARD_LIMIT,
) -> List[dict]:
    """Joined challenges closest to their deadline, expired ones last."""
    reference = as_utc(now) if now else datetime.now(timezone.utc)
    items = []
    for challenge in challenges:
        submission = submissions_by_challenge.get(challenge.challenge_id)
        items.append({
            "challenge_id": challenge.challenge_id,
            "title": challenge.title,
            "company": challenge.company,
            "progress": submission_progress(submission),
            "days_left": days_until(challenge.deadline, reference),
            "is_expired": as_utc(challenge.deadline) <= reference,
            "status": "In Progress" if submission else "Joined",
        })
    items.sort(key=lambda item: (item["is_expired"], item["days_left"]))
    return items[:limit]


def achievements(submissions: List[Submission], limit: int = DASHBOARD_LIMIT) -> List[dict]:
    reviewed = [s for s in submissions if s.status == SubmissionStatus.REVIEWED]
    return [
        {
            "title": "High Score Achievement" if (s.score or 0) > HIGH_SCORE_THRESHOLD else "Challenge Completed",
            "description": f"Score: {s.score if s.score is not None else 'N/A'} - {s.feedback or 'No feedback provided'}",
            "date": s.submitted_at,
        }
        for s in reviewed[:limit]
    ]


def badges_earned(submissions: Iterable[Submission]) -> int:
    return sum(
        1 for s in submissions
        if s.status == SubmissionStatus.REVIEWED and (s.score or 0) > HIGH_SCORE_THRESHOLD
    )


def percentile(rank: Optional[int], total: int) -> Optional[int]:
    """Top-N percent a rank falls in, e.g. rank 1 of 10 is the top 10%."""
    if rank is None or total <= 0:
        return None
    return math.ceil(rank / total * 100)
