from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from pydantic import BaseModel, model_validator
from typing import Optional, List

from ..logging_config import get_logger
from ..services.database import get_session
from ..services.auth import require_company, require_participant
from ..services.scoring import apply_review
from ..models.challenge import Challenge
from ..models.profile import Profile
from ..models.submission import Submission, SubmissionPublic, SubmissionStatus

logger = get_logger(__name__)

router = APIRouter(
    prefix="/submissions",
    tags=["Submissions"]
)


class MySubmissionResponse(SubmissionPublic):
    challenge_title: Optional[str]
    company: Optional[str]

@router.get("/me", response_model=List[MySubmissionResponse])
def get_my_submissions(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_participant)
):
    results = session.exec(
        select(Submission, Challenge)
        .outerjoin(Challenge, Challenge.challenge_id == Submission.challenge_id)
        .where(Submission.user_id == profile.user_id)
        .order_by(Submission.submitted_at.desc(), Submission.submission_id.desc())
    ).all()

    return [
        {
            **submission.model_dump(),
            "challenge_title": challenge.title if challenge else None,
            "company": challenge.company if challenge else None,
        }
        for submission, challenge in results
    ]


class ReviewRequest(BaseModel):
    status: SubmissionStatus
    score: Optional[int] = None
    feedback: Optional[str] = None

    @model_validator(mode="after")
    def check_score(self):
        if self.status == SubmissionStatus.PENDING:
            raise ValueError("A review must either accept or reject the submission")
        if self.status == SubmissionStatus.REVIEWED:
            if self.score is None:
                raise ValueError("A score is required for reviewed submissions")
            if not 0 <= self.score <= 100:
                raise ValueError("Score must be between 0 and 100")
        if self.feedback is not None and len(self.feedback) > 1000:
            raise ValueError("Feedback must be less than 1000 characters")
        return self

@router.put("/{submission_id}/review", response_model=SubmissionPublic)
def review_submission(
    submission_id: int,
    review: ReviewRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_company)
):
    submission = session.get(Submission, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    challenge = session.get(Challenge, submission.challenge_id)
    if not challenge or challenge.company != profile.company_name:
        raise HTTPException(status_code=403, detail="You can only review submissions to your own challenges")

    apply_review(session, submission, review.status, review.score, review.feedback)
    session.commit()
    session.refresh(submission)
    logger.info(
        "submission_reviewed",
        submission_id=submission_id,
        status=review.status.value,
        score=submission.score,
    )
    return submission
