"""FunilDash — Database Engine & Session Factory."""

from sqlalchemy import event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from funildash.config import settings
from funildash.core.logging import get_logger

logger = get_logger("database")

# Postgres pool tuned for short serverless-style requests
POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": 5,
    "max_overflow": 10,
    "pool_recycle": 300,
}


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    # ON DELETE CASCADE is ignored unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str) -> Engine:
    """Create an engine for ``url`` with backend-appropriate settings."""
    parsed = make_url(url)
    is_sqlite = parsed.get_backend_name() == "sqlite"

    if is_sqlite:
        new_engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        new_engine = create_engine(url, **POOL_OPTIONS)

    logger.info(
        f"Database engine ready: {parsed.get_backend_name()} at "
        f"{parsed.render_as_string(hide_password=True)}"
    )
    return new_engine


engine = build_engine(settings.effective_database_url)


def test_connection(target: Engine | None = None) -> bool:
    """Run ``SELECT 1``; False (and an ERROR log) when the database is unreachable."""
    try:
        with (target or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True


def init_db(target: Engine | None = None) -> None:
    """Create every table that does not exist yet."""
    # Importing the model modules registers their tables on the metadata
    from funildash.models import entity_models, metric_models  # noqa: F401

    SQLModel.metadata.create_all(target or engine)
    logger.info("Database tables ready")


def get_session():
    """Dependency — yields a DB session."""
    with Session(engine) as session:
        yield session
