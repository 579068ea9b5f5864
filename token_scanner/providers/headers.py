"""Request header rotation for throttling-sensitive upstreams.

Rotating user agents and referers, plus a small random pre-request delay,
lowers the chance of being throttled. None of it changes returned data.
"""

import asyncio
import random
import threading

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/120.0",
]

REFERERS = [
    "https://dexscreener.com/",
    "https://www.coingecko.com/",
    "https://coinmarketcap.com/",
    "https://www.dextools.io/",
    "https://birdeye.so/",
]


class HeaderRotator:
    """Owns the user-agent rotation state for one provider client."""

    def __init__(
        self,
        rotate_every: int = 30,
        jitter_ms: tuple[int, int] = (10, 60),
        user_agents: list[str] | None = None,
        referers: list[str] | None = None,
        rng: random.Random | None = None,
    ):
        self.rotate_every = rotate_every
        self.jitter_ms = jitter_ms
        self.user_agents = user_agents or USER_AGENTS
        self.referers = referers or REFERERS
        self._rng = rng or random.Random()
        self._index = 0
        self._request_count = 0
        self._lock = threading.Lock()

    def next_user_agent(self) -> str:
        """User agent for the next request; advances every ``rotate_every`` calls."""
        with self._lock:
            if self._request_count % self.rotate_every == 0:
                self._index = (self._index + 1) % len(self.user_agents)
            self._request_count += 1
            return self.user_agents[self._index]

    def random_referer(self) -> str:
        return self._rng.choice(self.referers)

    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.next_user_agent(),
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-site",
            "Referer": self.random_referer(),
        }

    async def jitter(self) -> None:
        """Sleep a small random interval before a request."""
        low, high = self.jitter_ms
        if high <= 0:
            return
        await asyncio.sleep(self._rng.randint(low, high) / 1000)

    @property
    def request_count(self) -> int:
        return self._request_count

    def reset(self) -> None:
        with self._lock:
            self._request_count = 0
            self._index = 0
