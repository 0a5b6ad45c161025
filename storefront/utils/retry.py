# storefront/utils/retry.py
import requests
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError
from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_exponential

from storefront.utils.logging import get_logger
from storefront.utils.settings import RETRY_ATTEMPTS

logger = get_logger(__name__)


def _is_transient_http(exc: BaseException) -> bool:
    """Network trouble and 5xx answers are worth another try; 4xx never is."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


def _is_transient_redis(exc: BaseException) -> bool:
    # script and response errors repeat on every attempt
    return isinstance(exc, (RedisConnectionError, RedisTimeoutError))


def _log_retry(state: RetryCallState) -> None:
    logger.warning(
        "Retrying after transient error",
        call=getattr(state.fn, "__qualname__", "?"),
        attempt=state.attempt_number,
        error=str(state.outcome.exception()),
    )


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception(_is_transient_http),
        before_sleep=_log_retry,
    )


def redis_retry():
    # the merge lock is on the login path, so give up quickly
    return retry(
        reraise=True,
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception(_is_transient_redis),
        before_sleep=_log_retry,
    )
