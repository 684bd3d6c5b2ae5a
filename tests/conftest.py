import os

# Settings are read per call; these are the defaults for every test.
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "5"
os.environ["JWT_EXPIRES_MINUTES"] = "60"

import psycopg2
import pytest

from reviews_api import crud
from reviews_api.tables import create_tables, drop_tables


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="session")
def postgres_dsn(tmp_path_factory):
    """
    DSN of the database the data-access tests run against.

    TEST_POSTGRES_URL wins when set. Otherwise a throwaway server is started
    with pgserver in a temporary data directory and stopped when the test process exits.
    """
    dsn = os.getenv("TEST_POSTGRES_URL")
    if dsn:
        yield dsn
        return

    pgserver = pytest.importorskip("pgserver")
    try:
        server = pgserver.get_server(str(tmp_path_factory.mktemp("pgdata")), cleanup_mode="stop")
    except Exception as exc:
        pytest.skip(f"could not start a PostgreSQL server: {exc}")
    yield server.get_uri()


@pytest.fixture
def connect(postgres_dsn):
    """Open extra connections (for concurrent writers); all are closed at teardown."""
    opened = []

    def _connect():
        connection = psycopg2.connect(postgres_dsn)
        opened.append(connection)
        return connection

    yield _connect
    for connection in opened:
        connection.close()


@pytest.fixture
def conn(postgres_dsn):
    """Fresh tables for each test."""
    connection = psycopg2.connect(postgres_dsn)
    create_tables(connection)
    yield connection
    drop_tables(connection)
    connection.close()


@pytest.fixture
def alice(conn):
    return crud.create_user(conn, "alice", "alice@example.com", "alice-password")


@pytest.fixture
def bob(conn):
    return crud.create_user(conn, "bob", "bob@example.com", "bob-password")


@pytest.fixture
def item(conn):
    return crud.create_item(conn, "Toyota Camry", "A reliable and fuel-efficient sedan.")
