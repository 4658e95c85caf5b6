"""
Test configuration and shared fixtures for the workpack test suite.
Provides database setup, a seeded project tree and the API test client.
"""

import os
import tempfile

# Request logs written by the app go to a throwaway database
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(tempfile.gettempdir(), 'workpack_test.db')}")

import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from workpack.app import create_app
from workpack.core.database import Base, get_db
from workpack.projects.models import User, Role, Project, Member
from workpack.projects.policy import VisibilityPolicy
from workpack.work_packages.models import Priority, Status, WorkPackage, Relation, RelationType
from workpack.work_packages.service import build_filter_registry
from workpack.logging.models import Log  # noqa: F401


# ===== DATABASE SETUP =====

@pytest.fixture(scope="session")
def engine():
    """Create in-memory SQLite engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine):
    """Create a database session, wiping all data afterwards"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)


@pytest.fixture
def client(db_session):
    """Create FastAPI test client with database overrides"""
    app = create_app()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ===== SAMPLE DATA FIXTURES =====

@pytest.fixture
def users(db_session) -> SimpleNamespace:
    """admin, a member, a reader without work package permission, an outsider and a locked user"""
    users = SimpleNamespace(
        admin=User(login="admin", firstname="Ada", lastname="Admin", admin=True),
        alice=User(login="alice", firstname="Alice", lastname="Archer"),
        bob=User(login="bob", firstname="Bob", lastname="Baker"),
        carol=User(login="carol", firstname="Carol", lastname="Cole"),
        dave=User(login="dave", firstname="Dave", lastname="Dunn", active=False),
    )
    db_session.add_all(vars(users).values())
    db_session.commit()
    return users


@pytest.fixture
def projects(db_session, users) -> SimpleNamespace:
    """
    platform (private)
      api (private)
        internal (private, alice is no member)
    website (public)
    archive (archived, alice is a member)
    """
    member = Role(name="Member", permissions=["view_project", "view_work_packages"])
    reader = Role(name="Project reader", permissions=["view_project"])
    db_session.add_all([member, reader])

    platform = Project(name="Platform", identifier="platform")
    website = Project(name="Website", identifier="website", public=True)
    archive = Project(name="Archive", identifier="archive", active=False)
    db_session.add_all([platform, website, archive])
    db_session.flush()
    api = Project(name="API", identifier="api", parent_id=platform.id)
    db_session.add(api)
    db_session.flush()
    internal = Project(name="Internal", identifier="internal", parent_id=api.id)
    db_session.add(internal)
    db_session.flush()

    db_session.add_all([
        Member(user_id=users.alice.id, project_id=platform.id, role_id=member.id),
        Member(user_id=users.alice.id, project_id=api.id, role_id=member.id),
        Member(user_id=users.alice.id, project_id=archive.id, role_id=member.id),
        Member(user_id=users.bob.id, project_id=platform.id, role_id=reader.id),
        Member(user_id=users.dave.id, project_id=platform.id, role_id=member.id),
    ])
    db_session.commit()
    return SimpleNamespace(platform=platform, api=api, internal=internal, website=website, archive=archive)


@pytest.fixture
def priorities(db_session) -> SimpleNamespace:
    """Positions deliberately differ from insertion order"""
    normal = Priority(name="Normal", position=2, is_default=True)
    urgent = Priority(name="Urgent", position=1)
    db_session.add_all([normal, urgent])
    db_session.commit()
    return SimpleNamespace(normal=normal, urgent=urgent)


@pytest.fixture
def statuses(db_session) -> SimpleNamespace:
    new = Status(name="New", position=1)
    in_progress = Status(name="In progress", position=2)
    closed = Status(name="Closed", position=3, is_closed=True)
    db_session.add_all([new, in_progress, closed])
    db_session.commit()
    return SimpleNamespace(new=new, in_progress=in_progress, closed=closed)


@pytest.fixture
def work_packages(db_session, users, projects, priorities, statuses) -> SimpleNamespace:
    """
    Three work packages in platform (estimates 1, 2 and 3 hours; two of them
    Normal, one Urgent) and one each in api, internal, website and archive.
    """
    def wp(subject, project, priority, status, **attributes):
        return WorkPackage(subject=subject, project_id=project.id, priority_id=priority.id,
                           status_id=status.id, **attributes)

    design = wp("Design schema", projects.platform, priorities.normal, statuses.new,
                assignee_id=users.alice.id, estimated_hours=1,
                start_date=date(2024, 1, 10), due_date=date(2024, 1, 20))
    migrate = wp("Write migrations", projects.platform, priorities.urgent, statuses.in_progress,
                 assignee_id=users.bob.id, estimated_hours=2,
                 start_date=date(2024, 1, 15), due_date=date(2024, 1, 18))
    review = wp("Review schema", projects.platform, priorities.normal, statuses.closed,
                estimated_hours=3, schedule_manually=True)
    db_session.add_all([design, migrate, review])
    db_session.flush()

    document = wp("Document endpoints", projects.api, priorities.normal, statuses.new,
                  assignee_id=users.alice.id, parent_id=design.id, due_date=date(2024, 2, 1),
                  labor_costs=Decimal("100.50"), material_costs=Decimal("20"))
    secret = wp("Rotate secrets", projects.internal, priorities.urgent, statuses.new)
    header = wp("Fix header", projects.website, priorities.urgent, statuses.new, story_points=3)
    old = wp("Old task", projects.archive, priorities.normal, statuses.closed)
    db_session.add_all([document, secret, header, old])
    db_session.flush()

    db_session.add_all([
        Relation(from_id=design.id, to_id=migrate.id, relation_type=RelationType.PRECEDES),
        Relation(from_id=review.id, to_id=design.id, relation_type=RelationType.RELATES),
        Relation(from_id=migrate.id, to_id=document.id, relation_type=RelationType.BLOCKS),
    ])
    db_session.commit()
    return SimpleNamespace(design=design, migrate=migrate, review=review, document=document,
                           secret=secret, header=header, old=old)


# ===== QUERY FIXTURES =====

@pytest.fixture
def policy(db_session) -> VisibilityPolicy:
    return VisibilityPolicy(db_session)


@pytest.fixture
def registry(policy):
    return build_filter_registry(policy)


@pytest.fixture
def as_user():
    """Request headers identifying the viewer"""
    def headers(user):
        return {"X-User-Id": str(user.id), "Accept": "application/json"}
    return headers
