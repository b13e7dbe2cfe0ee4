# OOP boundary for external i/o
# all http/keys/retries live here, validation and query building stay pure in their own modules
# use a thread-local session so one client can be shared by a ThreadPoolExecutor

from __future__ import annotations
import logging
import os
import threading
import time
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Type
from urllib.parse import urljoin

import pydantic
import requests
from requests.adapters import HTTPAdapter
from dotenv import load_dotenv
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from . import __version__
from .errors import (
    BreezometerError,
    ConfigurationError,
    ProviderApplicationError,
    TransportError,
    UnexpectedStatusError,
)
from .models import ClientConfig
from .query import build_query, redact
from .validation import (
    CurrentConditionsRequest,
    ForecastRequest,
    HistoricalConditionsRequest,
    LocationRequest,
    as_utc,
    validate_params,
)

load_dotenv()  # in production, environment variables are injected by the deployment

log = logging.getLogger(__name__)

CURRENT_PATH = "baqi/"
FORECAST_PATH = "forecast/"

# provider codes meaning "no data for this coordinate"; not an error
UNSUPPORTED_LOCATION_CODES = (20, 21)

# wait before retry n (0-indexed) is min(50 * 2**n, 60000) ms, no jitter
BACKOFF = wait_exponential(multiplier=0.05, max=60)
RETRYABLE = (TransportError, UnexpectedStatusError, ProviderApplicationError)

USER_AGENT = f"python-breezometer/{__version__}"

Callback = Callable[[Optional[BaseException], Any], None]

_datetime_adapter = pydantic.TypeAdapter(datetime)


def attach_parsed_datetime(body: Any) -> Any:
    # adds parsed_datetime next to every raw "datetime" string; the raw value is kept
    if isinstance(body, list):
        for item in body:
            attach_parsed_datetime(item)
    elif isinstance(body, dict):
        raw = body.get("datetime")
        if isinstance(raw, str):
            try:
                body["parsed_datetime"] = as_utc(_datetime_adapter.validate_python(raw))
            except pydantic.ValidationError:
                log.debug("Unparseable datetime in Breezometer response: %r", raw)
        if isinstance(body.get("data"), (dict, list)):
            attach_parsed_datetime(body["data"])
    return body


class BreezometerClient:
    # this class encapsulates provider details like base URL, params, auth, retries
    DEFAULT_BASE_URL = "https://api.breezometer.com/"
    DEFAULT_TIMEOUT = 60.0
    DEFAULT_RETRY_TIMES = 10

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_times: int = DEFAULT_RETRY_TIMES,
        headers: Mapping[str, str] | None = None,
        logger: Any = None,
    ):
        api_key = api_key or os.getenv("BREEZOMETER_API_KEY")
        if not api_key:
            # fail when key is missing to avoid confusing downstream errors
            raise ConfigurationError("BREEZOMETER_API_KEY not set")
        if retry_times < 0:
            raise ConfigurationError(f"'retry_times' must be >= 0 (got {retry_times})")
        if timeout <= 0:
            raise ConfigurationError(f"'timeout' must be > 0 seconds (got {timeout})")

        base_url = base_url or os.getenv("BREEZOMETER_BASE_URL") or self.DEFAULT_BASE_URL
        merged_headers = {"User-Agent": USER_AGENT}
        merged_headers.update(headers or {})

        self.config = ClientConfig(
            api_key=api_key,
            base_url=base_url.rstrip("/") + "/",
            timeout=float(timeout),
            retry_times=int(retry_times),
            headers=MappingProxyType(merged_headers),
            logger=logger or log,
        )

        # each worker thread lazily obtains its own session through _session()
        self._local = threading.local()
        # every session handed out, so close() reaches the ones owned by pool threads
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def logger(self) -> Any:
        return self.config.logger

    def _build_session(self) -> requests.Session:
        # central place to configure http behavior like headers and adapters
        s = requests.Session()
        s.headers.update(self.config.headers)
        adapter = HTTPAdapter()
        s.mount("http://", adapter)
        s.mount("https://", adapter)
        return s

    def _session(self) -> requests.Session:
        # thread-local session creation
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = self._build_session()
            self._local.session = sess
            with self._sessions_lock:
                self._sessions.append(sess)
        return sess

    def close(self) -> None:
        # closes the sessions of every thread that used this client; later calls open fresh ones
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
            self._local = threading.local()
        for sess in sessions:
            sess.close()

    def __enter__(self) -> "BreezometerClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_current_conditions(self, params: Mapping[str, Any] | None = None,
                               callback: Callback | None = None, **kwargs: Any) -> Any:
        """Current air quality at a coordinate.

        Accepts ``lat``, ``lon`` and optionally ``lang`` and ``fields``, either as a
        mapping, as keyword arguments, or both (keywords win). Returns the decoded
        response body, or ``None`` when the provider has no data for the location.
        """
        return self._call("get_current_conditions", CurrentConditionsRequest, CURRENT_PATH,
                          params, kwargs, callback)

    def get_historical_conditions(self, params: Mapping[str, Any] | None = None,
                                  callback: Callback | None = None, **kwargs: Any) -> Any:
        """Past air quality, either at one point in time or over a range.

        On top of the current-conditions parameters, takes exactly one of
        ``date_time`` or ``start_date`` + ``end_date`` (optionally with an hourly
        ``interval`` between 1 and 24). Neither may lie in the future.
        """
        return self._call("get_historical_conditions", HistoricalConditionsRequest, CURRENT_PATH,
                          params, kwargs, callback)

    def get_forecast(self, params: Mapping[str, Any] | None = None,
                     callback: Callback | None = None, **kwargs: Any) -> Any:
        """Hourly forecast, either ``hours`` ahead of now (1-24) or a future range
        given as ``start_date`` + ``end_date``."""
        return self._call("get_forecast", ForecastRequest, FORECAST_PATH, params, kwargs, callback)

    def _call(self, operation: str, request_cls: Type[LocationRequest], path: str,
              params: Mapping[str, Any] | None, kwargs: Dict[str, Any],
              callback: Callback | None) -> Any:
        try:
            request = validate_params(request_cls, _merge_params(params, kwargs))
            qs = build_query(request, self.config.api_key)
            result = self._send_with_retry(operation, path, qs)
        except BreezometerError as exc:
            if callback is None:
                raise
            callback(exc, None)
            return None

        if callback is not None:
            callback(None, result)
        return result

    def _send_with_retry(self, operation: str, path: str, qs: Dict[str, Any]) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.config.retry_times + 1),
            wait=BACKOFF,
            retry=retry_if_exception_type(RETRYABLE),
            before_sleep=before_sleep_log(log, logging.DEBUG),
            sleep=time.sleep,
            reraise=True,
        )
        return retrying(self._send, operation, path, qs)

    def _send(self, operation: str, path: str, qs: Dict[str, Any]) -> Any:
        url = urljoin(self.config.base_url, path)
        safe_qs = redact(qs)

        try:
            resp = self._session().get(url, params=qs, timeout=self.config.timeout)
        except requests.RequestException as exc:
            self.logger.error("Error calling Breezometer %s: %s", operation, exc,
                              extra={"params": safe_qs})
            raise TransportError(f"Request error calling Breezometer {operation}: {exc}") from exc

        if resp.status_code != 200:
            self.logger.error("Did not receive a 200 status code from Breezometer %s", operation,
                              extra={"status_code": resp.status_code, "body": resp.text,
                                     "params": safe_qs})
            raise UnexpectedStatusError(resp.status_code, resp.text, operation)

        if not resp.content:
            body: Any = {}
        else:
            try:
                body = resp.json()
            except ValueError as exc:
                self.logger.error("Invalid JSON from Breezometer %s", operation,
                                  extra={"body": resp.text, "params": safe_qs})
                raise ProviderApplicationError(
                    f"Invalid JSON returned from Breezometer {operation}: {exc}", body=resp.text) from exc

        error = body.get("error") if isinstance(body, dict) else None
        if error is not None:
            code = error.get("code") if isinstance(error, dict) else None
            if code in UNSUPPORTED_LOCATION_CODES:
                self.logger.info("Location not supported by Breezometer",
                                 extra={"provider_error": error, "params": safe_qs})
                return None

            message = error.get("message", error) if isinstance(error, dict) else error
            self.logger.error("Application level error returned from Breezometer %s", operation,
                              extra={"body": body, "params": safe_qs})
            raise ProviderApplicationError(
                f"Application error returned from Breezometer {operation}. Error: {message}",
                code=code, body=body)

        return attach_parsed_datetime(body)


def _merge_params(params: Mapping[str, Any] | None, kwargs: Dict[str, Any]) -> Any:
    # non-mappings pass through untouched so validation can reject them
    if params is None:
        return dict(kwargs) if kwargs else None
    if not isinstance(params, Mapping):
        return params
    merged = dict(params)
    merged.update(kwargs)
    return merged
