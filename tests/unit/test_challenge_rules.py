"""Unit tests for challenge validation, deadline arithmetic and participation state."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from arena.models.challenge import Challenge, Difficulty, as_utc, days_until
from arena.models.challenge_participant import ChallengeParticipant
from arena.models.submission import Submission, SubmissionStatus
from arena.routers.challenges import (
    ChallengeCreate,
    ChallengeUpdate,
    ParticipationState,
    SubmissionCreate,
    clean_list,
    parse_prize,
    participation_state,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _valid_challenge(**overrides) -> dict:
    data = {
        "title": "Fraud Detection",
        "description": "Flag fraudulent card transactions in real time.",
        "long_description": "Train a model on the provided transaction log and report precision and recall.",
        "difficulty": "Advanced",
        "deadline": _utc_now() + timedelta(days=14),
        "tags": ["Tabular", "Anomaly Detection"],
    }
    data.update(overrides)
    return data


class TestDeadlines:
    def test_days_left_rounds_up_partial_days(self):
        now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        deadline = now + timedelta(days=2, hours=1)
        assert days_until(deadline, now) == 3

    def test_days_left_whole_days(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert days_until(now + timedelta(days=5), now) == 5

    def test_past_deadline_is_zero_not_negative(self):
        now = datetime(2026, 1, 10, tzinfo=timezone.utc)
        assert days_until(now - timedelta(days=4), now) == 0

    def test_naive_datetimes_are_treated_as_utc(self):
        naive = datetime(2026, 3, 1, 8, 30)
        assert as_utc(naive) == datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)

    def test_challenge_expiry_flags(self):
        future = Challenge(
            title="Future", company="Acme", description="d", long_description="l",
            difficulty=Difficulty.BEGINNER, deadline=_utc_now() + timedelta(days=1),
        )
        past = Challenge(
            title="Past", company="Acme", description="d", long_description="l",
            difficulty=Difficulty.BEGINNER, deadline=_utc_now() - timedelta(days=1),
        )
        assert future.is_expired is False
        assert future.days_left == 1
        assert past.is_expired is True
        assert past.days_left == 0


class TestPrizeParsing:
    def test_position_and_reward(self):
        assert parse_prize("1st Place: $5,000") == {"position": "1st Place", "reward": "$5,000"}

    def test_reward_may_contain_colons(self):
        assert parse_prize("Grand Prize: Trip: Paris") == {"position": "Grand Prize", "reward": "Trip: Paris"}

    def test_text_without_separator_becomes_generic_prize(self):
        assert parse_prize("Swag bag") == {"position": "Prize", "reward": "Swag bag"}


class TestListCleaning:
    def test_trims_and_drops_blank_and_duplicate_entries(self):
        assert clean_list([" NLP ", "", "LLM", "NLP", "   "]) == ["NLP", "LLM"]


class TestChallengeValidation:
    def test_valid_challenge(self):
        challenge = ChallengeCreate(**_valid_challenge(prizes=["1st Place: $1,000"]))
        assert challenge.difficulty == Difficulty.ADVANCED
        assert challenge.prizes == ["1st Place: $1,000"]
        assert challenge.featured is False

    @pytest.mark.parametrize(
        "field,value",
        [
            ("title", "Tiny"),
            ("title", "x" * 101),
            ("description", "Too short"),
            ("long_description", "Still far too short to explain anything."),
            ("difficulty", "Expert"),
            ("tags", ["  ", ""]),
        ],
    )
    def test_rejects_invalid_fields(self, field, value):
        with pytest.raises(ValidationError):
            ChallengeCreate(**_valid_challenge(**{field: value}))

    def test_rejects_past_deadline(self):
        with pytest.raises(ValidationError):
            ChallengeCreate(**_valid_challenge(deadline=_utc_now() - timedelta(hours=1)))

    def test_update_accepts_partial_payload(self):
        update = ChallengeUpdate(featured=True)
        assert update.model_dump(exclude_unset=True) == {"featured": True}

    def test_update_still_validates_given_fields(self):
        with pytest.raises(ValidationError):
            ChallengeUpdate(title="abc")


class TestSubmissionValidation:
    def _payload(self, **overrides):
        data = {
            "github_url": "https://github.com/pat/fraud-detector",
            "video_url": "https://youtu.be/demo",
            "presentation_url": "https://slides.example.com/deck",
        }
        data.update(overrides)
        return data

    def test_valid_submission(self):
        submission = SubmissionCreate(**self._payload(description="  Gradient boosted trees  "))
        assert submission.description == "Gradient boosted trees"

    def test_gitlab_is_accepted(self):
        SubmissionCreate(**self._payload(github_url="https://gitlab.com/pat/model"))

    def test_unknown_code_host_is_rejected(self):
        with pytest.raises(ValidationError):
            SubmissionCreate(**self._payload(github_url="https://example.com/pat/model"))

    @pytest.mark.parametrize("field", ["github_url", "video_url", "presentation_url"])
    def test_blank_links_are_rejected(self, field):
        with pytest.raises(ValidationError):
            SubmissionCreate(**self._payload(**{field: "   "}))


class TestParticipationState:
    def _submission(self, status):
        return Submission(
            challenge_id=1, user_id=1, github_url="https://github.com/a/b",
            video_url="v", presentation_url="p", status=status,
        )

    def test_not_joined(self):
        assert participation_state(None, None) == ParticipationState.NOT_JOINED

    def test_joined_without_submission(self):
        participant = ChallengeParticipant(challenge_id=1, user_id=1)
        assert participation_state(participant, None) == ParticipationState.JOINED

    @pytest.mark.parametrize(
        "status,expected",
        [
            (SubmissionStatus.PENDING, ParticipationState.PENDING_REVIEW),
            (SubmissionStatus.REVIEWED, ParticipationState.REVIEWED),
            (SubmissionStatus.REJECTED, ParticipationState.REJECTED),
        ],
    )
    def test_submission_status_wins(self, status, expected):
        participant = ChallengeParticipant(challenge_id=1, user_id=1)
        assert participation_state(participant, self._submission(status)) == expected
