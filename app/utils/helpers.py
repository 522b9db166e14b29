"""Shared blueprint helpers.

db_commit_or_error: commit the request's unit of work, or roll back and
return a ready-to-send error response.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.models import db
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def db_commit_or_error():
    """Commit the session; return None on success or an error tuple on failure.

        cerr = db_commit_or_error()
        if cerr:
            return cerr

    IntegrityError (FK / CHECK / unique) → 409, any other database error → 500.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Commit rejected by constraint: %s", exc.orig)
        return api_error(E.CONFLICT_DUPLICATE, "Constraint violation")
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Commit failed")
        return api_error(E.DATABASE, "Database error")
    return None
