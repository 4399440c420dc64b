import asyncio
import random
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .. import config
from ..logging_config import get_logger
from ..models.submission import Submission, SubmissionStatus
from ..services import database
from ..services.scoring import apply_review

logger = get_logger(__name__)

EVALUATION_FEEDBACK = (
    "Your submission has been evaluated automatically. "
    "The solution meets the challenge requirements; see the leaderboard for your ranking."
)


def draw_score() -> int:
    return random.randint(config.EVALUATION_MIN_SCORE, config.EVALUATION_MAX_SCORE)


async def evaluate_submission(submission_id: int, delay: Optional[float] = None):
    """Simulated evaluation of a freshly created submission.

    Runs as a fire-and-forget background task: it waits, then scores the
    submission if nobody has reviewed it in the meantime. Nothing is retried
    and a pending evaluation does not survive a restart.
    """
    await asyncio.sleep(config.EVALUATION_DELAY_SECONDS if delay is None else delay)

    with structlog.contextvars.bound_contextvars(submission_id=submission_id):
        return score_pending_submission(submission_id)


def score_pending_submission(submission_id: int) -> Optional[int]:
    try:
        with Session(database.engine) as session:
            submission = session.get(Submission, submission_id)
            if not submission:
                logger.warning("evaluation_skipped", reason="not_found")
                return None
            if submission.status != SubmissionStatus.PENDING:
                logger.info("evaluation_skipped", reason="already_reviewed")
                return None

            score = draw_score()
            apply_review(session, submission, SubmissionStatus.REVIEWED, score, EVALUATION_FEEDBACK)
            session.commit()
            logger.info("submission_evaluated", score=score)
            return score
    except SQLAlchemyError as e:
        logger.error("evaluation_failed", error=str(e))
        return None
