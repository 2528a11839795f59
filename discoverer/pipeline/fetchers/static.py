from __future__ import annotations

from dataclasses import dataclass, field
from urllib import robotparser
from urllib.parse import urlparse

import httpx


DEFAULT_UA = "ADC-Fetcher/0.1 (+https://example.com)"

HTML_MIMES = ("text/html", "application/xhtml+xml")


@dataclass(frozen=True)
class FetchResult:
    url: str
    status_code: int
    mime: str | None
    encoding: str | None
    html: str | None
    headers: dict[str, str] = field(default_factory=dict)
    blocked_by_robots: bool = False

    @property
    def ok(self) -> bool:
        return self.html is not None and 200 <= self.status_code < 400


class StaticFetcher:
    """Fetches documents and detail pages linked from them.

    - httpx for network IO, redirects followed
    - robots.txt checked once per host with urllib.robotparser
    - Only HTML bodies are returned; other MIME types give html=None
    """

    def __init__(
        self,
        *,
        timeout_s: float = 12.0,
        user_agent: str = DEFAULT_UA,
        respect_robots: bool = True,
        client: httpx.Client | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.respect_robots = respect_robots
        self._client = client or httpx.Client(timeout=self.timeout_s, headers={"User-Agent": self.user_agent})
        self._robots: dict[str, robotparser.RobotFileParser | None] = {}

    def __enter__(self) -> "StaticFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _robots_for(self, url: str) -> robotparser.RobotFileParser | None:
        parsed = urlparse(url)
        host = f"{parsed.scheme}://{parsed.netloc}"
        if host not in self._robots:
            rp: robotparser.RobotFileParser | None = None
            try:
                resp = self._client.get(f"{host}/robots.txt")
                if resp.status_code < 400:
                    rp = robotparser.RobotFileParser()
                    rp.parse(resp.text.splitlines())
            except httpx.HTTPError:
                # Unreachable robots.txt means allow
                rp = None
            self._robots[host] = rp
        return self._robots[host]

    def robots_allows(self, url: str) -> bool:
        if not self.respect_robots:
            return True
        rp = self._robots_for(url)
        if rp is None:
            return True
        return rp.can_fetch(self.user_agent, url) and rp.can_fetch("*", url)

    def fetch(self, url: str) -> FetchResult:
        """GET url; raises httpx.HTTPError on transport failures."""
        if not self.robots_allows(url):
            return FetchResult(url=url, status_code=0, mime=None, encoding=None, html=None, blocked_by_robots=True)
        resp = self._client.get(url, follow_redirects=True)
        mime = resp.headers.get("Content-Type")
        mime_main = mime.split(";")[0].strip().lower() if mime else None
        html_text = resp.text if mime_main in HTML_MIMES else None
        return FetchResult(
            url=str(resp.request.url),
            status_code=resp.status_code,
            mime=mime_main,
            encoding=resp.encoding,
            html=html_text,
            headers={k: v for k, v in resp.headers.items()},
        )
