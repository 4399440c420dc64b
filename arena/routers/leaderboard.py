from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from pydantic import BaseModel
from typing import Optional, List
from enum import Enum

from ..services.database import get_session
from ..services.leaderboard import build_global_standings, index_profiles, search_standings, sort_standings
from ..models.profile import Profile
from ..models.submission import Submission, SubmissionStatus

router = APIRouter(
    prefix="/leaderboard",
    tags=["Leaderboard"]
)


class SortField(str, Enum):
    RANK = "rank"
    SCORE = "score"
    CHALLENGES = "challenges"
    WIN_RATE = "win_rate"

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

class StandingRow(BaseModel):
    rank: int
    user_id: int
    user_name: str
    user_avatar: Optional[str]
    score: int
    challenges: int
    win_rate: float


def load_global_standings(session: Session) -> List[dict]:
    submissions = session.exec(
        select(Submission)
        .where(Submission.status == SubmissionStatus.REVIEWED)
        .order_by(Submission.submission_id)
    ).all()
    if not submissions:
        return []

    user_ids = {submission.user_id for submission in submissions}
    profiles = session.exec(select(Profile).where(Profile.user_id.in_(user_ids))).all()
    return build_global_standings(submissions, index_profiles(profiles))


@router.get("", response_model=List[StandingRow])
def get_leaderboard(
    q: str = "",
    sort: SortField = SortField.RANK,
    order: SortOrder = SortOrder.ASC,
    session: Session = Depends(get_session)
):
    standings = search_standings(load_global_standings(session), q)
    return sort_standings(standings, sort.value, order.value)
