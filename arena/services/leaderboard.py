"""Ranking helpers for the per-challenge and global leaderboards.

Both leaderboards are built the same way: the scored submissions are fetched
first, the profiles of their authors are fetched with a second query, and the
two are joined in memory through a ``user_id -> profile`` lookup.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..models.profile import Profile
from ..models.submission import Submission

UNNAMED_USER = "Unnamed User"
ANONYMOUS_USER = "Anonymous User"

SORT_FIELDS = ("rank", "score", "challenges", "win_rate")


def index_profiles(profiles: Iterable[Profile]) -> Dict[int, Profile]:
    return {profile.user_id: profile for profile in profiles}


def display_name(profile: Optional[Profile]) -> str:
    if profile is None:
        return ANONYMOUS_USER
    return profile.full_name or UNNAMED_USER


def build_challenge_leaderboard(
    submissions: List[Submission],
    profiles_by_id: Dict[int, Profile],
) -> List[dict]:
    """Project reviewed submissions into leaderboard rows.

    ``submissions`` must already be ordered by score, highest first. Ranks are
    the 1-based positions in that order, so tied scores get sequential ranks.
    """
    rows = []
    for position, submission in enumerate(submissions, start=1):
        profile = profiles_by_id.get(submission.user_id)
        rows.append({
            "rank": position,
            "submission_id": submission.submission_id,
            "user_id": submission.user_id,
            "user_name": display_name(profile),
            "user_avatar": profile.avatar_url if profile else None,
            "score": submission.score or 0,
            "submitted_at": submission.submitted_at,
            "github_url": submission.github_url,
        })
    return rows


def challenge_winners(submissions: Iterable[Submission]) -> Dict[int, int]:
    """Map each challenge to the user holding rank 1 on its leaderboard."""
    best: Dict[int, Submission] = {}
    for submission in submissions:
        current = best.get(submission.challenge_id)
        if current is None or (submission.score or 0) > (current.score or 0):
            best[submission.challenge_id] = submission
        elif (submission.score or 0) == (current.score or 0) and submission.submission_id < current.submission_id:
            best[submission.challenge_id] = submission
    return {challenge_id: submission.user_id for challenge_id, submission in best.items()}


def build_global_standings(
    submissions: List[Submission],
    profiles_by_id: Dict[int, Profile],
) -> List[dict]:
    """Cumulative ranking across every challenge, from reviewed submissions."""
    totals: Dict[int, int] = defaultdict(int)
    challenge_counts: Dict[int, int] = defaultdict(int)
    for submission in submissions:
        totals[submission.user_id] += submission.score or 0
        challenge_counts[submission.user_id] += 1

    wins: Dict[int, int] = defaultdict(int)
    for user_id in challenge_winners(submissions).values():
        wins[user_id] += 1

    ordered = sorted(totals, key=lambda user_id: (-totals[user_id], user_id))
    standings = []
    for position, user_id in enumerate(ordered, start=1):
        profile = profiles_by_id.get(user_id)
        challenges = challenge_counts[user_id]
        standings.append({
            "rank": position,
            "user_id": user_id,
            "user_name": display_name(profile),
            "user_avatar": profile.avatar_url if profile else None,
            "score": totals[user_id],
            "challenges": challenges,
            "win_rate": round(wins[user_id] / challenges * 100, 1),
        })
    return standings


def search_standings(standings: List[dict], query: str) -> List[dict]:
    if not query:
        return standings
    needle = query.lower()
    return [row for row in standings if needle in row["user_name"].lower()]


def sort_standings(standings: List[dict], sort: str = "rank", order: str = "asc") -> List[dict]:
    """Order standings by one of SORT_FIELDS.

    The HTTP layer narrows ``sort`` to an enum before calling; other callers
    get a ValueError for anything else.
    """
    if sort not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {sort}")
    return sorted(standings, key=lambda row: row[sort], reverse=(order == "desc"))


def find_rank(standings: List[dict], user_id: int) -> Optional[int]:
    for row in standings:
        if row["user_id"] == user_id:
            return row["rank"]
    return None
