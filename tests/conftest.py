"""
conftest.py
-----------
Shared pytest fixtures for Corkboard tests.

Provides fixtures for:
- Database setup and teardown
- One fixture per entity manager
- Test data factories (categories, feeds, entries)
"""
import pytest
from pathlib import Path
from datetime import datetime, timedelta, timezone
from tempfile import TemporaryDirectory

from sqlalchemy import create_engine


OWNER = 1
OTHER_OWNER = 2


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def migrations_dir():
    """Path to the Alembic environment shipped with the package."""
    return Path(__file__).parent.parent / "corkboard" / "migrations"


# ----- Test Database Fixtures -----

@pytest.fixture
def test_db_path(tmp_dir):
    """Create temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_db(test_db_path, migrations_dir):
    """
    Create test database instance with schema.

    Returns a CorkboardDB instance with an initialized schema.
    Database is torn down after the test.
    """
    from corkboard.database.manager import CorkboardDB
    from corkboard.database.models import Base

    # Create schema up front so CorkboardDB skips Alembic
    engine = create_engine(f"sqlite:///{test_db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()

    db = CorkboardDB(db_path=test_db_path, migrations_dir=migrations_dir)

    yield db

    db.close()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    Provides a session with automatic rollback after test.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


# ----- Manager Fixtures -----

@pytest.fixture
def tag_manager(db_session):
    """Create TagManager instance for testing."""
    from corkboard.database.managers.tag_manager import TagManager
    return TagManager(db_session)


@pytest.fixture
def entry_tag_manager(db_session, tag_manager):
    """Create EntryTagManager instance for testing."""
    from corkboard.database.managers.entry_tag_manager import EntryTagManager
    return EntryTagManager(db_session, tags=tag_manager)


@pytest.fixture
def tag_merger(db_session):
    """Create TagMerger instance for testing."""
    from corkboard.database.managers.tag_merger import TagMerger
    return TagMerger(db_session)


@pytest.fixture
def cluster_entry_manager(db_session):
    """Create ClusterEntryManager instance for testing."""
    from corkboard.database.managers.cluster_entry_manager import ClusterEntryManager
    return ClusterEntryManager(db_session)


@pytest.fixture
def cluster_manager(db_session, cluster_entry_manager):
    """Create ClusterManager instance for testing."""
    from corkboard.database.managers.cluster_manager import ClusterManager
    return ClusterManager(db_session, members=cluster_entry_manager)


@pytest.fixture
def expiry_sweeper(db_session):
    """Create ExpirySweeper instance for testing."""
    from corkboard.database.managers.expiry_sweeper import ExpirySweeper
    return ExpirySweeper(db_session)


# ----- Test Data Factories -----

@pytest.fixture
def make_feed(db_session):
    """
    Factory creating a category and a feed for a user.

    Usage:
        feed = make_feed(OWNER, title="Planet Python")
    """
    from corkboard.database.models import Category, Feed

    def _make_feed(user_id=OWNER, title="Test Feed", category="General"):
        cat = Category(user_id=user_id, title=category)
        db_session.add(cat)
        db_session.flush()

        feed = Feed(
            user_id=user_id,
            category_id=cat.id,
            title=title,
            site_url="https://example.org",
        )
        db_session.add(feed)
        db_session.flush()
        return feed

    return _make_feed


@pytest.fixture
def make_entry(db_session, make_feed):
    """
    Factory creating an entry (and its feed when none is given).

    ``age`` is how long ago the entry was published.

    Usage:
        entry = make_entry(OWNER, title="Hello", age=timedelta(days=2))
    """
    from corkboard.database.models import Entry, EntryStatus

    feeds = {}

    def _make_entry(
        user_id=OWNER,
        title="Test Entry",
        age=timedelta(hours=1),
        status=EntryStatus.UNREAD.value,
        feed=None,
    ):
        if feed is None:
            if user_id not in feeds:
                feeds[user_id] = make_feed(user_id)
            feed = feeds[user_id]

        entry = Entry(
            user_id=user_id,
            feed_id=feed.id,
            title=title,
            url=f"https://example.org/{title.lower().replace(' ', '-')}",
            status=status,
            published_at=datetime.now(timezone.utc) - age,
        )
        db_session.add(entry)
        db_session.flush()
        return entry

    return _make_entry
