"""Global pytest fixtures for the AI Challenge Arena backend.

This module provides shared fixtures for testing including:
- An in-memory SQLite database, rebuilt for every test
- A FastAPI test client
- Profile, challenge and submission factories
- Bearer token headers for authenticated calls
"""

import os

# Configure the app before it is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EVALUATION_DELAY_SECONDS"] = "0"
os.environ["LOG_JSON"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from arena.main import app
from arena.models.challenge import Challenge, Difficulty
from arena.models.challenge_participant import ChallengeParticipant
from arena.models.profile import Profile, UserType
from arena.models.submission import Submission, SubmissionStatus
from arena.services import database
from arena.services.auth import create_tokens


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===========================================
# DATABASE FIXTURES
# ===========================================


@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    database.create_db_and_tables()
    yield
    SQLModel.metadata.drop_all(database.engine)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    with Session(database.engine) as session:
        yield session


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ===========================================
# DATA FACTORIES
# ===========================================


@pytest.fixture
def make_profile(session: Session) -> Callable[..., Profile]:
    counter = {"n": 0}

    def factory(
        user_type: UserType = UserType.PARTICIPANT,
        full_name: str = "Test User",
        company_name: str = "Acme AI",
        **kwargs,
    ) -> Profile:
        counter["n"] += 1
        profile = Profile(
            user_type=user_type,
            full_name=full_name,
            email=kwargs.pop("email", f"user{counter['n']}@example.com"),
            company_name=company_name if user_type == UserType.COMPANY else None,
            **kwargs,
        )
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    return factory


@pytest.fixture
def participant(make_profile) -> Profile:
    return make_profile(full_name="Pat Participant")


@pytest.fixture
def company(make_profile) -> Profile:
    return make_profile(user_type=UserType.COMPANY, full_name="Cora Company", company_name="Acme AI")


@pytest.fixture
def make_challenge(session: Session) -> Callable[..., Challenge]:
    def factory(company_name: str = "Acme AI", days: float = 10, **kwargs) -> Challenge:
        challenge = Challenge(
            title=kwargs.pop("title", "Image Captioning Sprint"),
            company=company_name,
            description=kwargs.pop("description", "Caption product photos with a vision-language model."),
            long_description=kwargs.pop(
                "long_description",
                "Build a captioning pipeline for a catalogue of product photos and report its quality.",
            ),
            difficulty=kwargs.pop("difficulty", Difficulty.INTERMEDIATE),
            deadline=utcnow() + timedelta(days=days),
            tags=kwargs.pop("tags", ["Vision", "LLM"]),
            **kwargs,
        )
        session.add(challenge)
        session.commit()
        session.refresh(challenge)
        return challenge

    return factory


@pytest.fixture
def make_submission(session: Session) -> Callable[..., Submission]:
    def factory(
        challenge: Challenge,
        profile: Profile,
        score: int = None,
        status: SubmissionStatus = None,
        joined: bool = True,
    ) -> Submission:
        if joined:
            session.add(ChallengeParticipant(challenge_id=challenge.challenge_id, user_id=profile.user_id))
        if status is None:
            status = SubmissionStatus.REVIEWED if score is not None else SubmissionStatus.PENDING
        submission = Submission(
            challenge_id=challenge.challenge_id,
            user_id=profile.user_id,
            github_url=f"https://github.com/example/{challenge.challenge_id}-{profile.user_id}",
            video_url="https://videos.example.com/demo",
            presentation_url="https://slides.example.com/deck",
            status=status,
            score=score,
        )
        session.add(submission)
        session.commit()
        session.refresh(submission)
        return submission

    return factory


# ===========================================
# AUTH HELPERS
# ===========================================


@pytest.fixture
def auth_headers() -> Callable[[Profile], dict]:
    def headers(profile: Profile) -> dict:
        token = create_tokens(profile.user_id)["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return headers


@pytest.fixture
def no_evaluation(monkeypatch):
    """Keep new submissions pending by disabling the background evaluator."""

    async def skip(submission_id, delay=None):
        return None

    monkeypatch.setattr("arena.routers.challenges.evaluate_submission", skip)
