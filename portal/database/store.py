import logging
from contextlib import contextmanager

from pymongo.errors import DuplicateKeyError, PyMongoError

from portal.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def store_guard(operation: str):
    """Translate driver failures into ``StoreUnavailable``.

    Duplicate-key errors pass through untouched; the registry handles them.
    """
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"Store error while trying to {operation}: {e}")
        raise StoreUnavailable(f"Database unavailable while trying to {operation}") from e
