# OOP boundary for external i/o
# all http/headers/timeouts live here, so the rest of the code is pure and testable
# exactly one GET per run, the body is returned as raw text because it is NDJSON

from __future__ import annotations
import logging
import os
import time
import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import ReadTimeoutError
from urllib3.util.retry import Retry
from dotenv import load_dotenv

load_dotenv()  # USERSTATS_URL may come from a local .env file

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://test.brightsign.io:3000"


class UserStatsError(RuntimeError):
    # base type for every fatal error, str() is the message shown on stderr
    pass

class InvalidURLError(UserStatsError):
    def __init__(self, url: str, detail: str):
        super().__init__(f"Error: Invalid URL {url!r}: {detail}")
        self.url = url

class FetchTimeoutError(UserStatsError):
    def __init__(self, timeout: float):
        super().__init__(f"Error: Request timed out after {timeout:g} seconds")
        self.timeout = timeout

class HTTPStatusError(UserStatsError):
    def __init__(self, status_code: int, reason: str):
        super().__init__(f"Error: HTTP {status_code} - {reason}")
        self.status_code = status_code
        self.reason = reason

class NetworkError(UserStatsError):
    def __init__(self, message: str):
        super().__init__(f"Error: {message}")

class EmptyResponseError(UserStatsError):
    def __init__(self):
        super().__init__("Error: Empty response from server")


def resolve_url(url: str | None = None) -> str:
    # explicit argument wins, then the environment, then the built-in default
    return url or os.getenv("USERSTATS_URL") or DEFAULT_URL


class UserFeedClient:
    # encapsulates transport details like headers, timeout and retry policy
    DEFAULT_TIMEOUT = 5.0
    CHUNK_SIZE = 8192

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "userstats/0.1",
    ):
        self.timeout = timeout
        self.user_agent = user_agent

        # a single attempt, any failure is terminal for the run
        # read=False keeps read timeouts surfacing as requests.ReadTimeout
        self._retry = Retry(total=0, read=False, raise_on_status=False)

    def _build_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"Accept": "application/json", "User-Agent": self.user_agent})
        adapter = HTTPAdapter(max_retries=self._retry)
        s.mount("http://", adapter)
        s.mount("https://", adapter)
        return s

    def fetch_text(self, url: str) -> str:
        logger.info("Fetching %s", url)
        # requests' timeout bounds each socket read, the deadline bounds the whole request
        deadline = time.monotonic() + self.timeout
        with self._build_session() as session:
            try:
                with session.get(url, timeout=self.timeout, stream=True) as resp:
                    if not 200 <= resp.status_code < 300:
                        raise HTTPStatusError(resp.status_code, resp.reason or "")
                    chunks = []
                    for chunk in resp.iter_content(chunk_size=self.CHUNK_SIZE):
                        chunks.append(chunk)
                        if time.monotonic() > deadline:
                            raise FetchTimeoutError(self.timeout)
                    # NDJSON has no charset parameter most of the time
                    encoding = resp.encoding or "utf-8"
            except (requests.exceptions.MissingSchema,
                    requests.exceptions.InvalidSchema,
                    requests.exceptions.InvalidURL,
                    requests.exceptions.URLRequired) as exc:
                # raised while preparing the request, nothing was sent
                raise InvalidURLError(url, str(exc)) from exc
            except requests.Timeout as exc:
                raise FetchTimeoutError(self.timeout) from exc
            except requests.ConnectionError as exc:
                # a read timeout while the body downloads arrives wrapped as ConnectionError
                if exc.args and isinstance(exc.args[0], ReadTimeoutError):
                    raise FetchTimeoutError(self.timeout) from exc
                raise NetworkError(str(exc)) from exc
            except requests.RequestException as exc:
                raise NetworkError(str(exc)) from exc

        return b"".join(chunks).decode(encoding, errors="replace")
