"""
Verified source fetching from an Etherscan-compatible API.

The API is shared by every call in a run and allows 5 requests per second,
so calls are paced at least MIN_REQUEST_INTERVAL apart.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

from .errors import MalformedResponse, UpstreamAPIError

MIN_REQUEST_INTERVAL = 0.22
REQUEST_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Pacing
# ---------------------------------------------------------------------------
class RateLimiter:
    """Sleeps until min_interval has passed since the previous call.

    Single writer only: the orchestrator fetches sequentially, so the last
    call time needs no lock.
    """

    def __init__(self, min_interval: float = MIN_REQUEST_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def wait(self) -> None:
        now = self._clock()
        if self._last_call is not None:
            elapsed = now - self._last_call
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self._last_call = self._clock()


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SourceBundle:
    """What the API reports as verified for an address.

    `sources` maps relative path -> content for multi-file verifications and
    is None when the API returned one flat source string.
    """
    address: str
    sources: Optional[dict[str, str]]
    raw: str = ""

    @property
    def is_multi_file(self) -> bool:
        return self.sources is not None


def parse_source_code(address: str, source_code: str) -> SourceBundle:
    """Normalise the SourceCode field of a getsourcecode record."""
    if not source_code.startswith("{{"):
        return SourceBundle(address=address, sources=None, raw=source_code)

    try:
        data = json.loads(source_code[1:-1])
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Undecodable SourceCode bundle for {address}: {e}",
                                address=address) from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"Unexpected SourceCode bundle for {address}: {data!r}",
                                address=address)

    entries = data.get("sources")
    if entries is None:
        return SourceBundle(address=address, sources=None, raw=source_code)
    if not isinstance(entries, dict):
        raise MalformedResponse(f"Unexpected sources field for {address}", address=address)

    sources: dict[str, str] = {}
    for path, entry in entries.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("content"), str):
            raise MalformedResponse(f"Missing content for {path} at {address}", address=address)
        sources[path] = entry["content"]
    return SourceBundle(address=address, sources=sources, raw=source_code)


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------
class EtherscanFetcher:
    def __init__(self, api_url: str, api_key: str,
                 session: Optional[requests.Session] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.timeout = timeout

    def get_sourcecode(self, address: str) -> dict[str, Any]:
        """Raw getsourcecode envelope; raises UpstreamAPIError unless message is OK."""
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self.api_key,
        }
        self.rate_limiter.wait()
        try:
            resp = self.session.get(f"{self.api_url}/api", params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamAPIError(f"Request for verified source of {address} failed: {e}",
                                   address=address) from e
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponse(f"Failed to decode JSON for {address}: {e}",
                                    address=address) from e

        if not isinstance(data, dict) or data.get("message") != "OK":
            raise UpstreamAPIError(
                f"Something went wrong getting verified source for {address}",
                address=address, payload=data)
        return data

    def fetch(self, address: str) -> SourceBundle:
        data = self.get_sourcecode(address)
        result = data.get("result")
        if not isinstance(result, list) or not result or not isinstance(result[0], dict):
            raise MalformedResponse(f"No result record for {address}", address=address)
        source_code = result[0].get("SourceCode")
        if not isinstance(source_code, str):
            raise MalformedResponse(f"No SourceCode field for {address}", address=address)
        return parse_source_code(address, source_code)
