# workpack/core/database.py
"""Database configuration, session generator and development seeding."""

from datetime import date, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from workpack.core.config import DATABASE_URL, SEED_SAMPLE_DATA

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ===== SESSION GENERATOR =====


def get_db():
    """Get a database session for the duration of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create tables and, when configured, seed development data."""
    initialize_database(seed=SEED_SAMPLE_DATA)


# ===== TABLE CREATION =====


def _import_models():
    # Import models so they are registered on Base.metadata
    from workpack.projects.models import User, Role, Project, Member  # noqa: F401
    from workpack.work_packages.models import Priority, Status, WorkPackage, Relation  # noqa: F401
    from workpack.logging.models import Log  # noqa: F401


def create_all_tables():
    """Create all tables."""
    _import_models()
    Base.metadata.create_all(bind=engine)
    print("All tables created successfully!")


def drop_all_tables():
    """Drop all tables (use with caution!)."""
    _import_models()
    Base.metadata.drop_all(bind=engine)
    print("All tables dropped!")


# ===== SAMPLE DATA CREATION =====


def create_sample_data():
    """Create a small project tree with members and work packages."""
    from workpack.projects.models import User, Role, Project, Member
    from workpack.work_packages.models import Priority, Status, WorkPackage, Relation, RelationType

    db = SessionLocal()

    try:
        if db.query(Project).count() > 0:
            print("Sample data already exists. Skipping creation.")
            return

        print("Creating sample data...")

        admin = User(login="admin", firstname="Ada", lastname="Admin", admin=True)
        alice = User(login="alice", firstname="Alice", lastname="Archer")
        bob = User(login="bob", firstname="Bob", lastname="Baker")
        db.add_all([admin, alice, bob])

        member_role = Role(name="Member", permissions=["view_project", "view_work_packages"])
        reader_role = Role(name="Project reader", permissions=["view_project"])
        db.add_all([member_role, reader_role])

        platform = Project(name="Platform", identifier="platform", public=False)
        db.add(platform)
        db.flush()
        api = Project(name="API", identifier="api", parent_id=platform.id, public=False)
        website = Project(name="Website", identifier="website", public=True)
        db.add_all([api, website])
        db.flush()

        db.add_all([
            Member(user_id=alice.id, project_id=platform.id, role_id=member_role.id),
            Member(user_id=alice.id, project_id=api.id, role_id=member_role.id),
            Member(user_id=bob.id, project_id=platform.id, role_id=reader_role.id),
        ])

        low = Priority(name="Low", position=1)
        normal = Priority(name="Normal", position=2, is_default=True)
        high = Priority(name="High", position=3)
        new = Status(name="New", position=1)
        in_progress = Status(name="In progress", position=2)
        closed = Status(name="Closed", position=3, is_closed=True)
        db.add_all([low, normal, high, new, in_progress, closed])
        db.flush()

        today = date.today()
        packages = [
            WorkPackage(subject="Set up CI", project_id=platform.id, priority_id=high.id,
                        status_id=in_progress.id, assignee_id=alice.id, start_date=today,
                        due_date=today + timedelta(days=3), estimated_hours=8),
            WorkPackage(subject="Write API docs", project_id=api.id, priority_id=normal.id,
                        status_id=new.id, assignee_id=bob.id, start_date=today + timedelta(days=2),
                        due_date=today + timedelta(days=9), estimated_hours=12, story_points=5),
            WorkPackage(subject="Fix login redirect", project_id=website.id, priority_id=low.id,
                        status_id=closed.id, estimated_hours=1.5, labor_costs=120),
        ]
        db.add_all(packages)
        db.flush()
        db.add(Relation(from_id=packages[0].id, to_id=packages[1].id, relation_type=RelationType.PRECEDES))
        db.commit()

        print(f"✅ Sample data created: 3 projects, {len(packages)} work packages")

    except Exception as e:
        db.rollback()
        print(f"❌ Error creating sample data: {str(e)}")
        raise

    finally:
        db.close()


# ===== INITIALIZATION FUNCTION =====


def initialize_database(force_recreate: bool = False, seed: bool = True):
    """Initialize the database with tables and optional sample data."""
    if force_recreate:
        print("🔄 Force recreate mode: Dropping existing tables...")
        drop_all_tables()

    create_all_tables()

    if seed:
        create_sample_data()


if __name__ == "__main__":
    # Allow running this file directly to initialize the database
    initialize_database()
