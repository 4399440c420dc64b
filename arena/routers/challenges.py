from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, UploadFile, File
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

from ..config import CODE_HOSTS
from ..logging_config import get_logger
from ..services.database import get_session
from ..services.auth import require_company, require_participant
from ..services.leaderboard import build_challenge_leaderboard, index_profiles
from ..services.s3 import upload_image, extract_key_from_url, delete_file
from ..services.scoring import refresh_profile_score
from ..models.challenge import Challenge, Difficulty, as_utc
from ..models.challenge_participant import ChallengeParticipant, ChallengeParticipantPublic
from ..models.profile import Profile, ProfilePublic
from ..models.submission import Submission, SubmissionPublic, SubmissionStatus
from ..tasks.evaluation import evaluate_submission

logger = get_logger(__name__)

router = APIRouter(
    prefix="/challenges",
    tags=["Challenges"]
)

ALREADY_JOINED = "You have already joined this challenge"
ALREADY_SUBMITTED = "You have already submitted to this challenge"


def check_length(value: str, label: str, minimum: int, maximum: int) -> str:
    value = value.strip()
    if len(value) < minimum:
        raise ValueError(f"{label} must be at least {minimum} characters")
    if len(value) > maximum:
        raise ValueError(f"{label} must be less than {maximum} characters")
    return value

def clean_list(values: List[str]) -> List[str]:
    # Trimmed, non-empty and unique, keeping the first occurrence
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned

def parse_prize(text: str) -> dict:
    """Turn "1st Place: $5,000" into a position/reward pair."""
    position, separator, reward = text.partition(": ")
    position, reward = position.strip(), reward.strip()
    if not separator or not reward:
        return {"position": "Prize", "reward": text.strip()}
    return {"position": position or "Prize", "reward": reward}


class Prize(BaseModel):
    position: str
    reward: str

class ChallengeUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    long_description: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    deadline: Optional[datetime] = None
    tags: Optional[List[str]] = None
    prizes: Optional[List[str]] = None
    submission_requirements: Optional[List[str]] = None
    evaluation_criteria: Optional[List[str]] = None
    featured: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value):
        return None if value is None else check_length(value, "Title", 5, 100)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value):
        return None if value is None else check_length(value, "Description", 20, 300)

    @field_validator("long_description")
    @classmethod
    def validate_long_description(cls, value):
        return None if value is None else check_length(value, "Long description", 50, 5000)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, value):
        if value is None:
            return None
        value = as_utc(value)
        if value <= datetime.now(timezone.utc):
            raise ValueError("Deadline must be in the future")
        return value

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value):
        if value is None:
            return None
        value = clean_list(value)
        if not value:
            raise ValueError("At least one tag is required")
        return value

    @field_validator("prizes", "submission_requirements", "evaluation_criteria")
    @classmethod
    def validate_lists(cls, value):
        return None if value is None else clean_list(value)

class ChallengeCreate(ChallengeUpdate):
    title: str
    description: str
    long_description: str
    difficulty: Difficulty
    deadline: datetime
    tags: List[str]
    prizes: List[str] = []
    submission_requirements: List[str] = []
    evaluation_criteria: List[str] = []
    featured: bool = False

class ChallengeResponse(BaseModel):
    challenge_id: int
    title: str
    company: str
    company_logo_url: Optional[str]
    description: str
    long_description: str
    difficulty: Difficulty
    deadline: datetime
    tags: List[str]
    prizes: List[Prize]
    submission_requirements: List[str]
    evaluation_criteria: List[str]
    participants: int
    featured: bool
    created_at: datetime
    updated_at: Optional[datetime]
    days_left: int
    is_expired: bool

def challenge_response(challenge: Challenge) -> dict:
    return {
        **challenge.model_dump(),
        "days_left": challenge.days_left,
        "is_expired": challenge.is_expired,
    }

def filter_challenges(
    challenges: List[Challenge],
    q: Optional[str] = None,
    featured: Optional[bool] = None,
    difficulty: Optional[Difficulty] = None,
    tag: Optional[str] = None,
) -> List[Challenge]:
    needle = q.lower() if q else None
    result = []
    for challenge in challenges:
        if needle and needle not in challenge.title.lower() and needle not in challenge.description.lower():
            continue
        if featured and not challenge.featured:
            continue
        if difficulty and challenge.difficulty != difficulty:
            continue
        if tag and tag.lower() not in (t.lower() for t in challenge.tags):
            continue
        result.append(challenge)
    return result

def get_challenge_or_404(session: Session, challenge_id: int) -> Challenge:
    challenge = session.get(Challenge, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge

def get_owned_challenge(session: Session, challenge_id: int, profile: Profile, action: str) -> Challenge:
    challenge = get_challenge_or_404(session, challenge_id)
    # Ownership is the company name string, not a foreign key
    if challenge.company != profile.company_name:
        raise HTTPException(status_code=403, detail=f"You don't have permission to {action} this challenge")
    return challenge

def find_participation(session: Session, challenge_id: int, user_id: int) -> Optional[ChallengeParticipant]:
    return session.exec(
        select(ChallengeParticipant)
        .where(
            (ChallengeParticipant.challenge_id == challenge_id) &
            (ChallengeParticipant.user_id == user_id)
        )
    ).first()

def find_submission(session: Session, challenge_id: int, user_id: int) -> Optional[Submission]:
    return session.exec(
        select(Submission)
        .where(
            (Submission.challenge_id == challenge_id) &
            (Submission.user_id == user_id)
        )
    ).first()


@router.get("", response_model=List[ChallengeResponse])
def list_challenges(
    q: Optional[str] = None,
    featured: Optional[bool] = None,
    difficulty: Optional[Difficulty] = None,
    tag: Optional[str] = None,
    session: Session = Depends(get_session)
):
    challenges = session.exec(
        select(Challenge).order_by(Challenge.created_at.desc(), Challenge.challenge_id.desc())
    ).all()
    return [
        challenge_response(challenge)
        for challenge in filter_challenges(challenges, q, featured, difficulty, tag)
    ]


@router.get("/{challenge_id}", response_model=ChallengeResponse)
def get_challenge(challenge_id: int, session: Session = Depends(get_session)):
    return challenge_response(get_challenge_or_404(session, challenge_id))


@router.post("", response_model=ChallengeResponse, status_code=201)
def create_challenge(
    challenge: ChallengeCreate,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    if not profile.company_name:
        raise HTTPException(status_code=400, detail="Please complete your company profile first")

    new_challenge = Challenge(
        title=challenge.title,
        company=profile.company_name,
        description=challenge.description,
        long_description=challenge.long_description,
        difficulty=challenge.difficulty,
        deadline=challenge.deadline,
        tags=challenge.tags,
        prizes=[parse_prize(prize) for prize in challenge.prizes],
        submission_requirements=challenge.submission_requirements,
        evaluation_criteria=challenge.evaluation_criteria,
        featured=challenge.featured,
        created_by=profile.user_id,
    )
    session.add(new_challenge)
    session.commit()
    session.refresh(new_challenge)
    logger.info("challenge_created", challenge_id=new_challenge.challenge_id, company=profile.company_name)
    return challenge_response(new_challenge)


@router.put("/{challenge_id}", response_model=ChallengeResponse)
def update_challenge(
    challenge_id: int,
    update: ChallengeUpdate,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    challenge = get_owned_challenge(session, challenge_id, profile, "update")

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "prizes" in changes:
        changes["prizes"] = [parse_prize(prize) for prize in changes["prizes"]]
    for field, value in changes.items():
        setattr(challenge, field, value)

    challenge.updated_at = datetime.now(timezone.utc)
    session.add(challenge)
    session.commit()
    session.refresh(challenge)
    return challenge_response(challenge)


@router.delete("/{challenge_id}", status_code=204)
def delete_challenge(
    challenge_id: int,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    challenge = get_owned_challenge(session, challenge_id, profile, "delete")

    # Delete in correct order to handle foreign key constraints
    authors = set()
    for submission in session.exec(
        select(Submission).where(Submission.challenge_id == challenge_id)
    ).all():
        authors.add(submission.user_id)
        session.delete(submission)
    for participant in session.exec(
        select(ChallengeParticipant).where(ChallengeParticipant.challenge_id == challenge_id)
    ).all():
        session.delete(participant)
    session.flush()

    for user_id in authors:
        refresh_profile_score(session, user_id)

    logo_url = challenge.company_logo_url
    session.delete(challenge)
    session.commit()
    logger.info("challenge_deleted", challenge_id=challenge_id)

    if logo_url:
        delete_file(extract_key_from_url(logo_url))


@router.put("/{challenge_id}/logo", response_model=ChallengeResponse)
async def update_challenge_logo(
    challenge_id: int,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    challenge = get_owned_challenge(session, challenge_id, profile, "update")

    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    if challenge.company_logo_url:
        delete_file(extract_key_from_url(challenge.company_logo_url))

    file_content = await file.read()
    challenge.company_logo_url = await upload_image(
        file_content=file_content,
        folder=f"challenge-logos/{challenge_id}",
        identifier="",
        width=256,
        height=256
    )
    challenge.updated_at = datetime.now(timezone.utc)
    session.add(challenge)
    session.commit()
    session.refresh(challenge)
    return challenge_response(challenge)


@router.post("/{challenge_id}/join", response_model=ChallengeParticipantPublic, status_code=201)
def join_challenge(
    challenge_id: int,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_participant)
):
    challenge = get_challenge_or_404(session, challenge_id)
    if challenge.is_expired:
        raise HTTPException(status_code=400, detail="Challenge has ended")

    if find_participation(session, challenge_id, profile.user_id):
        raise HTTPException(status_code=409, detail=ALREADY_JOINED)

    participant = ChallengeParticipant(challenge_id=challenge_id, user_id=profile.user_id)
    session.add(participant)
    challenge.participants += 1
    session.add(challenge)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent join won the race on the unique constraint
        session.rollback()
        raise HTTPException(status_code=409, detail=ALREADY_JOINED)

    session.refresh(participant)
    logger.info("challenge_joined", challenge_id=challenge_id, user_id=profile.user_id)
    return participant


class ParticipationState(str, Enum):
    NOT_JOINED = "not_joined"
    JOINED = "joined"
    PENDING_REVIEW = "pending_review"
    REVIEWED = "reviewed"
    REJECTED = "rejected"

class ParticipationStatusResponse(BaseModel):
    challenge_id: int
    state: ParticipationState
    joined_at: Optional[datetime] = None
    submission: Optional[SubmissionPublic] = None

def participation_state(
    participant: Optional[ChallengeParticipant],
    submission: Optional[Submission]
) -> ParticipationState:
    if submission is not None:
        if submission.status == SubmissionStatus.REVIEWED:
            return ParticipationState.REVIEWED
        if submission.status == SubmissionStatus.REJECTED:
            return ParticipationState.REJECTED
        return ParticipationState.PENDING_REVIEW
    if participant is not None:
        return ParticipationState.JOINED
    return ParticipationState.NOT_JOINED

@router.get("/{challenge_id}/status", response_model=ParticipationStatusResponse)
def get_participation_status(
    challenge_id: int,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_participant)
):
    get_challenge_or_404(session, challenge_id)
    participant = find_participation(session, challenge_id, profile.user_id)
    submission = find_submission(session, challenge_id, profile.user_id)
    return {
        "challenge_id": challenge_id,
        "state": participation_state(participant, submission),
        "joined_at": participant.joined_at if participant else None,
        "submission": submission,
    }


class SubmissionCreate(BaseModel):
    github_url: str
    video_url: str
    presentation_url: str
    description: Optional[str] = None

    @field_validator("github_url")
    @classmethod
    def validate_github_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Code repository link is required")
        if not any(host in value.lower() for host in CODE_HOSTS):
            raise ValueError(f"Code repository must be hosted on one of: {', '.join(CODE_HOSTS)}")
        return value

    @field_validator("video_url", "presentation_url")
    @classmethod
    def validate_link(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Link is required")
        return value

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if len(value) > 2000:
            raise ValueError("Description must be less than 2000 characters")
        return value or None

@router.post("/{challenge_id}/submit", response_model=SubmissionPublic, status_code=201)
def submit_solution(
    challenge_id: int,
    request: SubmissionCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_participant)
):
    challenge = get_challenge_or_404(session, challenge_id)
    if challenge.is_expired:
        raise HTTPException(status_code=400, detail="Challenge has ended")

    if not find_participation(session, challenge_id, profile.user_id):
        raise HTTPException(status_code=403, detail="You must join this challenge before submitting")

    if find_submission(session, challenge_id, profile.user_id):
        raise HTTPException(status_code=409, detail=ALREADY_SUBMITTED)

    submission = Submission(
        challenge_id=challenge_id,
        user_id=profile.user_id,
        github_url=request.github_url,
        video_url=request.video_url,
        presentation_url=request.presentation_url,
        description=request.description,
    )
    session.add(submission)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=ALREADY_SUBMITTED)
    session.refresh(submission)

    background_tasks.add_task(evaluate_submission, submission.submission_id)
    logger.info("submission_created", submission_id=submission.submission_id, challenge_id=challenge_id)
    return submission


class LeaderboardRow(BaseModel):
    rank: int
    submission_id: int
    user_id: int
    user_name: str
    user_avatar: Optional[str]
    score: int
    submitted_at: datetime
    github_url: Optional[str]

@router.get("/{challenge_id}/leaderboard", response_model=List[LeaderboardRow])
def get_challenge_leaderboard(challenge_id: int, session: Session = Depends(get_session)):
    get_challenge_or_404(session, challenge_id)

    submissions = session.exec(
        select(Submission)
        .where(
            (Submission.challenge_id == challenge_id) &
            (Submission.status == SubmissionStatus.REVIEWED)
        )
        .order_by(Submission.score.desc(), Submission.submission_id)
    ).all()
    if not submissions:
        return []

    user_ids = {submission.user_id for submission in submissions}
    profiles = session.exec(select(Profile).where(Profile.user_id.in_(user_ids))).all()
    return build_challenge_leaderboard(submissions, index_profiles(profiles))


class ChallengeSubmissionResponse(BaseModel):
    submission: SubmissionPublic
    author: Optional[ProfilePublic]

@router.get("/{challenge_id}/submissions", response_model=List[ChallengeSubmissionResponse])
def get_challenge_submissions(
    challenge_id: int,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    get_owned_challenge(session, challenge_id, profile, "view submissions of")

    submissions = session.exec(
        select(Submission)
        .where(Submission.challenge_id == challenge_id)
        .order_by(Submission.submitted_at.desc(), Submission.submission_id.desc())
    ).all()
    profiles = index_profiles(session.exec(
        select(Profile).where(Profile.user_id.in_({s.user_id for s in submissions}))
    ).all()) if submissions else {}

    return [
        {"submission": submission, "author": profiles.get(submission.user_id)}
        for submission in submissions
    ]
