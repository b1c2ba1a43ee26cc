"""
Shared fixtures: an in-memory SQLite database per test and a TestClient bound to it.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db, get_session_factory
from app.main import app
from app.models.chapter import ExperienceChapter
from app.models.engagement_event import EngagementEvent
from app.models.session import DemoSession


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


# --------------------------------------------------------------------------
# Data helpers
# --------------------------------------------------------------------------

def add_session(db, session_id, **profile):
    session = DemoSession(id=session_id, **profile)
    db.add(session)
    db.commit()
    return session


def add_event(db, session_id, event_type, **fields):
    event = EngagementEvent(session_id=session_id, event_type=event_type, **fields)
    db.add(event)
    db.commit()
    return event


def add_chapters(db, experience_id, count, inactive=0):
    for i in range(count + inactive):
        db.add(ExperienceChapter(
            id=f"{experience_id}-ch{i}",
            experience_id=experience_id,
            title=f"Chapter {i + 1}",
            display_order=i,
            is_active=i < count,
        ))
    db.commit()
