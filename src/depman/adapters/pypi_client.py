"""PyPI client adapter with retries, detail assembly and fan-out search."""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

import requests

from depman.domain.exceptions import (
    InvalidResponseError,
    NetworkError,
    PyPIError,
    RequestCancelled,
)
from depman.domain.models import PackageDetail, SearchResult
from depman.domain.versions import is_stable_version, sort_versions_desc

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pypi.org"

HTTP_TIMEOUT = 10.0
MAX_RETRIES = 3
RETRY_DELAY = 0.1
BACKOFF_MULTIPLIER = 2.0

MAX_DISPLAY_VERSIONS = 20
MAX_LICENSE_LENGTH = 40
MAX_SEARCH_RESULTS = 10

RETRY_STATUSES = frozenset({500, 502, 503, 504, 429})

# How often a waiting request or the fan-out collector looks at the cancellation signal
_POLL_INTERVAL = 0.05


def _close_abandoned(future: Future) -> None:
    if not future.cancelled() and future.exception() is None:
        future.result().close()


def _text(value: object) -> str:
    """A string field of the JSON document, or empty when missing or not a string."""
    return value if isinstance(value, str) else ""


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidResponseError(
            f"Invalid JSON response from PyPI: '{key}' is not an object"
        )
    return value


def search_variations(query: str) -> list[str]:
    """Name permutations tried alongside an exact-name lookup."""
    return [
        f"python-{query}",
        f"py{query}",
        f"{query}-python",
        f"{query}lib",
        f"{query}-py",
    ]


class PyPIClient:
    """Client for the PyPI JSON API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = HTTP_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        backoff_multiplier: float = BACKOFF_MULTIPLIER,
        max_results: int = MAX_SEARCH_RESULTS,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Index root, defaults to https://pypi.org (trailing slash dropped)
            session: Shared requests session, one is created when omitted
            sleep: Replacement for the backoff wait, used by tests
        """
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        # One session per client so connections are pooled across requests
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_results = max_results
        self._sleep = sleep

    # -- HTTP ---------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> float:
        """Delay slept before the given (1-based) retry attempt."""
        return self.retry_delay * self.backoff_multiplier ** (attempt - 1)

    def _check_cancel(self, cancel: Optional[threading.Event], url: str) -> None:
        if cancel is not None and cancel.is_set():
            logger.info("pypi request cancelled: %s", url)
            raise RequestCancelled(f"Request to {url} was cancelled")

    def _pause(self, delay: float, cancel: Optional[threading.Event], url: str) -> None:
        if self._sleep is not None:
            self._sleep(delay)
        elif cancel is not None:
            # Event.wait returns True as soon as the signal is set
            if cancel.wait(delay):
                self._check_cancel(cancel, url)
        else:
            time.sleep(delay)

    def _send(self, url: str, cancel: Optional[threading.Event]) -> requests.Response:
        if cancel is None:
            return self.session.get(url, timeout=self.timeout)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="depman-http")
        try:
            future = executor.submit(self.session.get, url, timeout=self.timeout)
            while True:
                done, _ = wait({future}, timeout=_POLL_INTERVAL)
                if done:
                    return future.result()
                if cancel.is_set():
                    # The request keeps running; its response is closed when it lands
                    future.add_done_callback(_close_abandoned)
                    self._check_cancel(cancel, url)
        finally:
            executor.shutdown(wait=False)

    def get_with_retry(
        self, url: str, cancel: Optional[threading.Event] = None
    ) -> requests.Response:
        """
        GET a URL applying the retry policy.

        Transport errors and retryable statuses (5xx gateway family, 429) are
        retried with exponential backoff. Any other non-2xx response is
        returned as-is so callers can interpret it (404 means "not found").

        Raises:
            RequestCancelled: If the cancellation signal is set before, during or between attempts
            NetworkError: When every attempt failed
        """
        last_error: PyPIError = NetworkError(f"No attempt made for {url}")
        for attempt in range(self.max_retries + 1):
            self._check_cancel(cancel, url)

            if attempt > 0:
                delay = self.backoff_delay(attempt)
                logger.info(
                    "retrying pypi request (attempt %d, backoff %.0f ms): %s",
                    attempt + 1,
                    delay * 1000,
                    url,
                )
                self._pause(delay, cancel, url)
                self._check_cancel(cancel, url)

            try:
                response = self._send(url, cancel)
            except requests.exceptions.Timeout:
                last_error = NetworkError("Connection to PyPI timed out. Please check your internet connection.")
                logger.warning("pypi request timed out: %s", url)
                continue
            except requests.exceptions.ConnectionError as e:
                last_error = NetworkError(f"Unable to connect to PyPI: {e}")
                logger.warning("pypi connection failed: %s (%s)", url, e)
                continue
            except requests.exceptions.RequestException as e:
                last_error = NetworkError(f"Network error while fetching from PyPI: {e}")
                logger.warning("pypi request failed: %s (%s)", url, e)
                continue

            # A response that lands after cancellation is discarded
            if cancel is not None and cancel.is_set():
                response.close()
                self._check_cancel(cancel, url)

            status = response.status_code
            logger.info("pypi response received (status %d): %s", status, url)

            if 200 <= status < 300:
                return response

            if status not in RETRY_STATUSES:
                logger.warning("pypi non-retryable status %d: %s", status, url)
                return response

            response.close()
            last_error = NetworkError(f"PyPI server error: {status}")
            logger.warning("pypi retryable status %d: %s", status, url)

        logger.error("pypi request exhausted retries: %s (%s)", url, last_error)
        raise last_error

    def _fetch_json(
        self, name: str, cancel: Optional[threading.Event]
    ) -> Optional[dict]:
        url = f"{self.base_url}/pypi/{name}/json"
        response = self.get_with_retry(url, cancel)

        # Handle 404 - package not found is not an error
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise InvalidResponseError(
                f"Unexpected status {response.status_code} from PyPI for '{name}'"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Invalid JSON response from PyPI: {e}")
        if not isinstance(data, dict):
            raise InvalidResponseError("Invalid JSON response from PyPI: expected an object")
        return data

    # -- public API -------------------------------------------------------

    def get_package(
        self, name: str, cancel: Optional[threading.Event] = None
    ) -> Optional[SearchResult]:
        """
        Fetch summary information for a single package.

        Returns:
            SearchResult, or None if the index answers 404

        Raises:
            PyPIError: On network failure, cancellation or a malformed response
        """
        data = self._fetch_json(name, cancel)
        if data is None:
            return None
        info = _section(data, "info")
        return SearchResult(
            name=_text(info.get("name")) or name,
            version=_text(info.get("version")),
            summary=_text(info.get("summary")),
        )

    def get_package_detail(
        self, name: str, cancel: Optional[threading.Event] = None
    ) -> Optional[PackageDetail]:
        """
        Fetch full package detail including stable versions, newest first.

        Returns:
            PackageDetail, or None if the index answers 404

        Raises:
            PyPIError: On network failure, cancellation or a malformed response
        """
        data = self._fetch_json(name, cancel)
        if data is None:
            return None
        return assemble_detail(data, name)

    def _lookup_quietly(
        self, name: str, cancel: Optional[threading.Event]
    ) -> Optional[SearchResult]:
        try:
            return self.get_package(name, cancel)
        except PyPIError as e:
            logger.debug("search lookup for %s failed: %s", name, e)
            return None

    def search(
        self, query: str, cancel: Optional[threading.Event] = None
    ) -> list[SearchResult]:
        """
        Search the index for a query.

        The exact name is looked up first; then common name variations are
        requested concurrently. Results are deduplicated by lower-cased name
        and collection stops as soon as max_results is reached, without
        waiting for requests still in flight.

        Raises:
            RequestCancelled: If the cancellation signal is observed
        """
        query = query.strip().lower()
        if not query:
            return []

        results: list[SearchResult] = []
        seen: set[str] = set()

        self._check_cancel(cancel, query)
        exact = self._lookup_quietly(query, cancel)
        self._check_cancel(cancel, query)
        if exact is not None:
            results.append(exact)
            seen.add(exact.name.lower())

        if len(results) >= self.max_results:
            return results

        pending = [name for name in search_variations(query) if name not in seen]
        if not pending:
            return results

        executor = ThreadPoolExecutor(
            max_workers=len(pending), thread_name_prefix="depman-search"
        )
        try:
            outstanding: set[Future] = {
                executor.submit(self._lookup_quietly, name, cancel) for name in pending
            }
            while outstanding and len(results) < self.max_results:
                self._check_cancel(cancel, query)
                done, outstanding = wait(
                    outstanding, timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED
                )
                for future in done:
                    found = future.result()
                    if found is None:
                        continue
                    key = found.name.lower()
                    if key in seen:
                        continue
                    seen.add(key)
                    results.append(found)
                    if len(results) >= self.max_results:
                        break
            self._check_cancel(cancel, query)
        finally:
            # Abandon whatever is still running; late answers are dropped
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info("search for %r returned %d results", query, len(results))
        return results


def assemble_detail(data: dict, requested_name: str) -> PackageDetail:
    """
    Build a PackageDetail from a PyPI JSON document.

    Pre-release versions are discarded, the rest sorted newest first and
    capped at MAX_DISPLAY_VERSIONS. Long licence strings are truncated.
    Fields of the wrong type are treated as missing.

    Raises:
        InvalidResponseError: If "info" or "releases" is not an object
    """
    info = _section(data, "info")
    releases = _section(data, "releases")

    versions = [version for version in releases if is_stable_version(version)]
    versions = sort_versions_desc(versions)[:MAX_DISPLAY_VERSIONS]

    license_text = _text(info.get("license"))
    if len(license_text) > MAX_LICENSE_LENGTH:
        license_text = license_text[:MAX_LICENSE_LENGTH] + "…"

    return PackageDetail(
        name=_text(info.get("name")) or requested_name,
        version=_text(info.get("version")),
        summary=_text(info.get("summary")),
        author=_text(info.get("author")),
        license=license_text,
        home_page=_text(info.get("home_page")),
        requires_python=_text(info.get("requires_python")),
        versions=tuple(versions),
    )
