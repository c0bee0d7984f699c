# Overview: Service-layer operations for concurrency; row locks and optimistic-lock commits.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def commit_or_conflict(message: str = "Resource was modified concurrently, please retry") -> None:
    """
    Commit the current session, translating concurrency failures into 409.

    StaleDataError: an optimistic version_id check failed.
    IntegrityError: a unique constraint (e.g., invoice_number) was hit.

    No retry is attempted; the caller decides whether to resubmit.
    """
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        raise ConflictError(message)
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)
