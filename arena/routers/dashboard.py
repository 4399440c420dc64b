from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from ..services.database import get_session
from ..services.auth import require_company, require_participant
from ..services.analytics import (
    active_challenges,
    achievements,
    badges_earned,
    candidate_summaries,
    company_stats,
    percentile,
)
from ..services.leaderboard import display_name, find_rank, index_profiles
from ..models.challenge import Challenge
from ..models.challenge_participant import ChallengeParticipant
from ..models.profile import Profile
from ..models.submission import Submission, SubmissionStatus
from .leaderboard import load_global_standings

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"]
)

RECENT_LIMIT = 5


class CompanyStats(BaseModel):
    active_challenges: int
    total_submissions: int
    candidates_engaged: int
    average_score: float

class RecentSubmission(BaseModel):
    submission_id: int
    challenge_id: int
    challenge_title: Optional[str]
    user_id: int
    user_name: str
    user_avatar: Optional[str]
    status: SubmissionStatus
    score: Optional[int]
    submitted_at: datetime

class TopChallenge(BaseModel):
    challenge_id: int
    title: str
    participants: int
    submissions: int
    deadline: datetime
    days_left: int
    is_expired: bool

class CompanyDashboardResponse(BaseModel):
    company_name: str
    stats: CompanyStats
    recent_submissions: List[RecentSubmission]
    top_challenges: List[TopChallenge]

class CandidateResponse(BaseModel):
    user_id: int
    user_name: str
    user_avatar: Optional[str]
    email: Optional[str]
    submissions: int
    best_score: Optional[int]
    average_score: float


def company_name_or_400(profile: Profile) -> str:
    if not profile.company_name:
        raise HTTPException(status_code=400, detail="Company profile not found")
    return profile.company_name

def load_company_data(session: Session, company_name: str):
    """Owned challenges, then the submissions and participants of those challenges."""
    challenges = session.exec(
        select(Challenge).where(Challenge.company == company_name)
    ).all()
    challenge_ids = [challenge.challenge_id for challenge in challenges]
    if not challenge_ids:
        return challenges, [], []

    submissions = session.exec(
        select(Submission)
        .where(Submission.challenge_id.in_(challenge_ids))
        .order_by(Submission.submitted_at.desc(), Submission.submission_id.desc())
    ).all()
    participants = session.exec(
        select(ChallengeParticipant).where(ChallengeParticipant.challenge_id.in_(challenge_ids))
    ).all()
    return challenges, submissions, participants

def load_profiles(session: Session, user_ids) -> dict:
    if not user_ids:
        return {}
    return index_profiles(session.exec(select(Profile).where(Profile.user_id.in_(user_ids))).all())


@router.get("/company", response_model=CompanyDashboardResponse)
def get_company_dashboard(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    company_name = company_name_or_400(profile)
    challenges, submissions, participants = load_company_data(session, company_name)

    recent = submissions[:RECENT_LIMIT]
    profiles = load_profiles(session, {submission.user_id for submission in recent})
    titles = {challenge.challenge_id: challenge.title for challenge in challenges}
    recent_submissions = [
        {
            "submission_id": submission.submission_id,
            "challenge_id": submission.challenge_id,
            "challenge_title": titles.get(submission.challenge_id),
            "user_id": submission.user_id,
            "user_name": display_name(profiles.get(submission.user_id)),
            "user_avatar": profiles[submission.user_id].avatar_url if submission.user_id in profiles else None,
            "status": submission.status,
            "score": submission.score,
            "submitted_at": submission.submitted_at,
        }
        for submission in recent
    ]

    submission_counts = {}
    for submission in submissions:
        submission_counts[submission.challenge_id] = submission_counts.get(submission.challenge_id, 0) + 1
    top = sorted(challenges, key=lambda c: (-c.participants, c.challenge_id))[:RECENT_LIMIT]
    top_challenges = [
        {
            "challenge_id": challenge.challenge_id,
            "title": challenge.title,
            "participants": challenge.participants,
            "submissions": submission_counts.get(challenge.challenge_id, 0),
            "deadline": challenge.deadline,
            "days_left": challenge.days_left,
            "is_expired": challenge.is_expired,
        }
        for challenge in top
    ]

    return {
        "company_name": company_name,
        "stats": company_stats(challenges, submissions, participants),
        "recent_submissions": recent_submissions,
        "top_challenges": top_challenges,
    }


@router.get("/company/candidates", response_model=List[CandidateResponse])
def get_company_candidates(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    company_name = company_name_or_400(profile)
    _, submissions, _ = load_company_data(session, company_name)
    profiles = load_profiles(session, {submission.user_id for submission in submissions})
    return candidate_summaries(submissions, profiles)


class ActiveChallenge(BaseModel):
    challenge_id: int
    title: str
    company: str
    progress: int
    days_left: int
    is_expired: bool
    status: str

class Achievement(BaseModel):
    title: str
    description: str
    date: datetime

class ParticipantDashboardResponse(BaseModel):
    ongoing_challenges: int
    career_score: int
    badges_earned: int
    active_challenges: List[ActiveChallenge]
    achievements: List[Achievement]
    rank: Optional[int]
    percentile: Optional[int]

@router.get("/participant", response_model=ParticipantDashboardResponse)
def get_participant_dashboard(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_participant)
):
    joined = session.exec(
        select(Challenge)
        .join(ChallengeParticipant, ChallengeParticipant.challenge_id == Challenge.challenge_id)
        .where(ChallengeParticipant.user_id == profile.user_id)
    ).all()

    submissions = session.exec(
        select(Submission)
        .where(Submission.user_id == profile.user_id)
        .order_by(Submission.submitted_at.desc(), Submission.submission_id.desc())
    ).all()
    submissions_by_challenge = {submission.challenge_id: submission for submission in submissions}

    standings = load_global_standings(session)
    rank = find_rank(standings, profile.user_id)

    return {
        "ongoing_challenges": len(joined),
        "career_score": profile.score or 0,
        "badges_earned": badges_earned(submissions),
        "active_challenges": active_challenges(joined, submissions_by_challenge),
        "achievements": achievements(submissions),
        "rank": rank,
        "percentile": percentile(rank, len(standings)),
    }
