from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .. import config
from .errors import DataAccessFailure, MalformedData

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(fn: Callable[..., T], *args, attempts: int | None = None, **kwargs) -> T:
    """
    Run a read against the store, retrying DataAccessFailure with exponential
    backoff (1s, 2s, 4s ... capped at RETRY_MAX_DELAY). The last failure is
    re-raised unchanged. MalformedData is raised on the first attempt.
    """
    retryer = Retrying(
        stop=stop_after_attempt(max(1, attempts or config.RETRY_ATTEMPTS)),
        wait=wait_exponential(multiplier=1, max=config.RETRY_MAX_DELAY),
        retry=retry_if_exception_type(DataAccessFailure) & retry_if_not_exception_type(MalformedData),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retryer(fn, *args, **kwargs)
