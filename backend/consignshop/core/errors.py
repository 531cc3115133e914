"""Application error taxonomy and mapping of data-store failures onto it.

Controllers and services raise these; the handler registered in ``main`` turns
them into ``{"message": ..., "error": ...}`` JSON responses.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, MultipleResultsFound, NoResultFound, SQLAlchemyError

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_dict(self, hide_internal: bool = False) -> dict:
        body = {"message": self.message}
        if self.error and not (hide_internal and self.status_code >= 500):
            body["error"] = self.error
        return body


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class StoreError(AppError):
    status_code = 500


class ConsistencyError(AppError):
    """A multi-step write partially completed and needs manual reconciliation."""
    status_code = 500


def store_error_code(exc: Exception) -> Optional[str]:
    """Best-effort SQLSTATE for a DBAPI error wrapped by SQLAlchemy.

    psycopg exposes ``sqlstate``; SQLite only has message text, so the two
    constraint failures we care about are recognised by wording.
    """
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code
    text = str(orig)
    if "UNIQUE constraint failed" in text:
        return UNIQUE_VIOLATION
    if "FOREIGN KEY constraint failed" in text:
        return FOREIGN_KEY_VIOLATION
    return None


def map_store_error(
    exc: Exception,
    context: str,
    *,
    not_found: Optional[str] = None,
    unique: Optional[str] = None,
    foreign_key: Optional[str] = None,
    foreign_key_conflict: bool = False,
) -> AppError:
    """Translate a store exception into the taxonomy.

    ``context`` is the generic 500 message. The keyword messages select which
    store conditions are expected at the call site; anything not expected
    becomes a StoreError.
    """
    logger.error("Store error - %s: %s", context, exc)

    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, NoResultFound):
        return NotFoundError(not_found or "Record not found.")
    if isinstance(exc, MultipleResultsFound):
        return StoreError(context, error=str(exc))
    if isinstance(exc, IntegrityError):
        code = store_error_code(exc)
        detail = str(getattr(exc, "orig", exc))
        if code == UNIQUE_VIOLATION and unique:
            return ConflictError(unique, error=detail)
        if code == FOREIGN_KEY_VIOLATION and foreign_key:
            if foreign_key_conflict:
                return ConflictError(foreign_key, error=detail)
            return ValidationError(foreign_key, error=detail)
        return StoreError(context, error=detail)
    if isinstance(exc, SQLAlchemyError):
        return StoreError(context, error=str(exc))
    return StoreError(context, error=str(exc))
