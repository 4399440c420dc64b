from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from ..config import DATABASE_URL


def build_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live per connection, so every session must share one
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


# SQLAlchemy database engine
engine = build_engine(DATABASE_URL)


def create_db_and_tables():
    # Import models so they are registered on the metadata
    from ..models import challenge, challenge_participant, profile, submission  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
