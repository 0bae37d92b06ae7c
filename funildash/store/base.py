"""FunilDash — Store helpers shared by the entity and metric stores."""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from funildash.core.errors import StoreFailure
from funildash.core.logging import get_logger

logger = get_logger("store")


@contextmanager
def store_errors(action: str, session: Optional[Session] = None) -> Iterator[None]:
    """Turn database errors into StoreFailure, rolling back if a session is given."""
    try:
        yield
    except SQLAlchemyError as e:
        if session is not None:
            session.rollback()
        logger.error(f"Store failure while {action}: {e}", exc_info=True)
        raise StoreFailure() from e
