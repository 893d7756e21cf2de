"""HTTP fetching of playlists and origin feeds."""

import logging
from pathlib import Path

import requests

from podtracks.config.schema import FetchConfig
from podtracks.feeds.models import FetchFailure, FetchResult
from podtracks.utils.errors import (
    MalformedInputError,
    NotFoundError,
    RateLimitedError,
    TransientNetworkError,
)
from podtracks.utils.retry import (
    RetryPolicy,
    classify_http_status,
    classify_request_exception,
    parse_retry_after,
    with_network_retry,
)

logger = logging.getLogger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.9, */*;q=0.5"


class FeedFetcher:
    """Fetches feed or playlist markup over HTTP.

    Never raises for HTTP or network problems: callers get a FetchResult
    whose ``failure`` says what went wrong, so one dead feed cannot abort
    a batch. Timeouts and 5xx responses are retried per the RetryPolicy.

    Example:
        >>> fetcher = FeedFetcher()
        >>> result = fetcher.fetch("https://example.com/feed.xml")
        >>> if result.ok:
        ...     print(len(result.body))
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Timeout and User-Agent settings
            retry_policy: Retry policy for transient failures
            session: Optional pre-built requests session (tests inject fakes)
        """
        self.config = config or FetchConfig()
        self.session = session or requests.Session()
        self._get_with_retry = with_network_retry(retry_policy)(self._get)

    def fetch(self, url: str) -> FetchResult:
        """GET a feed and return its raw bytes or a typed failure.

        Args:
            url: Absolute http(s) URL

        Returns:
            FetchResult with ``content`` on success, ``failure`` otherwise
        """
        try:
            response = self._get_with_retry(url)
        except TransientNetworkError as e:
            return FetchResult(url=url, failure=FetchFailure.NETWORK, error=str(e))
        except MalformedInputError as e:
            return FetchResult(url=url, failure=FetchFailure.INVALID_URL, error=str(e))

        status = response.status_code
        if status >= 400:
            error = classify_http_status(
                status, url, parse_retry_after(response.headers.get("Retry-After"))
            )
            if isinstance(error, NotFoundError):
                failure = FetchFailure.NOT_FOUND
            elif isinstance(error, RateLimitedError):
                failure = FetchFailure.RATE_LIMITED
            else:
                failure = FetchFailure.HTTP_ERROR
            logger.debug("Fetch of %s failed: %s", url, error)
            return FetchResult(url=url, status_code=status, failure=failure, error=str(error))

        return FetchResult(url=url, status_code=status, content=response.content)

    def _get(self, url: str) -> requests.Response:
        try:
            response = self.session.get(
                url,
                timeout=self.config.timeout_seconds,
                headers={"User-Agent": self.config.user_agent, "Accept": FEED_ACCEPT},
            )
        except requests.RequestException as e:
            raise classify_request_exception(e, url) from e

        if response.status_code == 408 or response.status_code >= 500:
            raise TransientNetworkError(f"Server error (HTTP {response.status_code}): {url}")
        return response


def is_remote_source(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def load_source(source: str, fetcher: FeedFetcher | None = None) -> FetchResult:
    """Read playlist markup from an http(s) URL or a local file.

    Raises:
        NotFoundError: If a local file does not exist
    """
    if is_remote_source(source):
        return (fetcher or FeedFetcher()).fetch(source)

    path = Path(source).expanduser()
    if not path.is_file():
        raise NotFoundError(f"Playlist file not found: {path}")
    return FetchResult(url=str(path), content=path.read_bytes())
