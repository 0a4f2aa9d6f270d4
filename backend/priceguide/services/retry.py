from functools import wraps
import logging

from sqlalchemy.exc import OperationalError
from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential

from ..core.settings import get_settings

logger = logging.getLogger(__name__)


def _transient_retrying(db, store) -> Retrying:
    log_retry = before_sleep_log(logger, logging.WARNING)

    def _rollback_then_log(retry_state):
        # the failed attempt left the session transaction unusable
        db.rollback()
        log_retry(retry_state)

    return Retrying(
        retry=retry_if_exception(lambda e: isinstance(e, OperationalError) and not store.writes_started),
        stop=stop_after_attempt(get_settings().read_retry_attempts),
        wait=wait_exponential(multiplier=0.1, max=2),
        before_sleep=_rollback_then_log,
        reraise=True,
    )


def retry_transient(method):
    """
    Re-run a service operation from the start when a transient database
    error (connection loss, deadlock) hits its read-and-validate stage.

    Once the operation has started writing, the error propagates as is;
    a write or commit is never sent twice.
    """
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        for attempt in _transient_retrying(self.db, self.store):
            with attempt:
                self.store.writes_started = False
                return method(self, *args, **kwargs)
    return wrapper
