"""Per-operation write guard.

Each downstream write (payment, subscription, transaction, booking,
notification) runs through run_write() so it commits on its own and a
failure rolls back only that write. Callers get a WriteResult instead of an
exception, which keeps sibling writes running.
"""

import logging
from collections import namedtuple

from sqlalchemy.exc import SQLAlchemyError

from wathaci.extensions import db

logger = logging.getLogger(__name__)

WriteResult = namedtuple("WriteResult", ["label", "ok", "rowcount", "error"])


def _format_context(context):
    return ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)


def run_write(label, operation, **context):
    """Run `operation()` and commit it as an independent unit.

    `operation` returns the number of affected rows (or None for inserts).
    Context kwargs (reference, user_id, ...) are only used for log lines.

    Returns a WriteResult; never raises SQLAlchemyError.
    """
    try:
        rowcount = operation()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to {label} ({_format_context(context)}): {e}")
        return WriteResult(label, False, 0, str(e))

    return WriteResult(label, True, rowcount, None)
