import logging
from contextlib import contextmanager

from django.core.exceptions import ImproperlyConfigured

from core.config import get_notes_config
from core.exceptions import StorageFailure
from .board import NoteBoard
from .crypto import NoteCipher
from .store import NoteStoreClient

logger = logging.getLogger(__name__)


@contextmanager
def open_board(user):
    """
    Load the board for ``user`` and release its HTTP client and key
    material when the request is done.
    """
    try:
        config = get_notes_config(require_storage=True)
    except ImproperlyConfigured as exc:
        logger.error("Note storage misconfigured: %s", exc)
        raise StorageFailure(str(exc)) from exc

    cipher = NoteCipher.from_config(user.subject, config)
    try:
        store = NoteStoreClient(
            config.storage_endpoint,
            user,
            cipher=cipher,
            timeout=config.storage_timeout,
        )
        try:
            board = NoteBoard(
                store,
                user,
                due_tz=config.due_date_timezone,
                overdue_recheck_seconds=config.overdue_recheck_seconds,
            )
            board.load()
            yield board
        finally:
            store.close()
    finally:
        cipher.clear()
