# pkgregistry/integrations/github.py
from __future__ import annotations
import time

import requests
from typing import Callable, Optional, Tuple
from urllib.parse import quote, urljoin, urlparse

from loguru import logger

from ..core.config import Settings
from ..core.errors import NetworkError, UpstreamFetchError, ValidationError

REDIRECT_STATUSES = {301, 302, 303, 307, 308}
MAX_REDIRECT_CAP = 5
CHUNK_SIZE = 64 * 1024

# ------------ utilities ------------
def parse_repo_owner_name(repo_url: str) -> Optional[Tuple[str, str, Optional[str]]]:
    # Accept forms like:
    #  - https://github.com/owner/name
    #  - https://github.com/owner/name.git
    #  - https://github.com/owner/name/tree/<ref>
    #  - git@github.com:owner/name.git
    # Returns (owner, name, ref).
    s = repo_url.strip()
    if "github.com" not in s:
        return None
    if s.startswith("git@github.com:"):
        s = s.split("git@github.com:", 1)[1]
    elif "github.com/" in s:
        s = s.split("github.com/", 1)[1]
    else:
        return None
    parts = [p for p in s.split("?")[0].split("#")[0].split("/") if p]
    if len(parts) < 2:
        return None
    owner, name = parts[0], parts[1]
    if name.endswith(".git"):
        name = name[:-4]
    ref = parts[3] if len(parts) >= 4 and parts[2] == "tree" else None
    return owner, name, ref


def parse_npm_package(url: str) -> Optional[str]:
    """Package name from an npmjs.com package page URL (scoped names included)."""
    parsed = urlparse(url.strip())
    if not parsed.netloc.endswith("npmjs.com"):
        return None
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2 or parts[0] != "package":
        return None
    if parts[1].startswith("@"):
        return "/".join(parts[1:3]) if len(parts) >= 3 else None
    return parts[1]


def normalize_repository_url(raw: str) -> str:
    """Turn an npm ``repository`` value into an https GitHub URL where possible."""
    s = raw.strip()
    if s.startswith("github:"):
        s = "https://github.com/" + s[len("github:"):]
    if s.startswith("git+"):
        s = s[len("git+"):]
    for prefix in ("git://", "ssh://git@", "git@"):
        if s.startswith(prefix):
            s = "https://" + s[len(prefix):].replace("github.com:", "github.com/")
    if s.count("/") == 1 and ":" not in s:
        s = "https://github.com/" + s  # "owner/name" shorthand
    return s


# ------------ adapter ------------
class ContentSourceAdapter:
    """
    Fetch raw package archives from GitHub, npm entries backed by GitHub,
    or direct https .zip URLs.

    The GitHub credential is only ever sent to the configured API host.
    ``timeout`` bounds the whole fetch (redirects and body), not each read.
    """

    def __init__(self, session: requests.Session | None = None,
                 api_url: str = "https://api.github.com",
                 npm_registry_url: str = "https://registry.npmjs.org",
                 timeout: float = 30.0, max_redirects: int = 1,
                 clock: Callable[[], float] = time.monotonic):
        self.session = session or requests.Session()
        self.api_url = api_url.rstrip("/")
        self.api_host = urlparse(self.api_url).netloc
        self.npm_registry_url = npm_registry_url.rstrip("/")
        self.timeout = timeout
        self.max_redirects = max(1, min(max_redirects, MAX_REDIRECT_CAP))
        self._clock = clock

    @classmethod
    def from_settings(cls, s: Settings) -> "ContentSourceAdapter":
        return cls(api_url=s.GITHUB_API_URL, npm_registry_url=s.NPM_REGISTRY_URL,
                   timeout=s.FETCH_TIMEOUT_S, max_redirects=s.MAX_REDIRECTS)

    def fetch(self, locator: str, credential: str | None = None) -> bytes:
        url = self.resolve_archive_url(locator)
        logger.info("Fetching package archive from {}", url)
        deadline = self._clock() + self.timeout
        resp = self._get(url, credential, deadline=deadline)
        return self._read_body(resp, url, deadline)

    def resolve_archive_url(self, locator: str) -> str:
        npm_name = parse_npm_package(locator)
        if npm_name:
            locator = self._npm_to_github(npm_name)
        gh = parse_repo_owner_name(locator)
        if gh:
            owner, name, ref = gh
            url = f"{self.api_url}/repos/{owner}/{name}/zipball"
            return f"{url}/{ref}" if ref else url
        parsed = urlparse(locator)
        if parsed.scheme == "https" and parsed.netloc and parsed.path.lower().endswith(".zip"):
            return locator
        raise ValidationError(f"unsupported package source: {locator}")

    def _npm_to_github(self, package_name: str) -> str:
        url = f"{self.npm_registry_url}/{quote(package_name, safe='@')}"
        resp = self._get(url, None, accept="application/json")
        try:
            doc = resp.json()
        except ValueError:
            raise UpstreamFetchError(resp.status_code, f"npm registry returned invalid JSON for {package_name}")
        repo = doc.get("repository") if isinstance(doc, dict) else None
        raw = repo.get("url") if isinstance(repo, dict) else repo
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError(f"npm package {package_name} has no repository")
        github_url = normalize_repository_url(raw)
        if not parse_repo_owner_name(github_url):
            raise ValidationError(f"npm package {package_name} is not hosted on GitHub: {raw}")
        logger.debug("Resolved npm package {} to {}", package_name, github_url)
        return github_url

    def _remaining(self, url: str, deadline: float | None) -> float:
        if deadline is None:
            return self.timeout
        left = deadline - self._clock()
        if left <= 0:
            raise NetworkError(f"fetching {url} exceeded {self.timeout}s")
        return left

    def _get(self, url: str, credential: str | None, accept: str = "application/vnd.github+json",
             deadline: float | None = None):
        hops = 0
        while True:
            headers = {"Accept": accept, "User-Agent": "pkgregistry"}
            # the token goes to the GitHub API host only, never to caller-chosen or redirect hosts
            if credential and urlparse(url).netloc == self.api_host:
                headers["Authorization"] = f"Bearer {credential}"
            try:
                r = self.session.get(url, headers=headers, timeout=self._remaining(url, deadline),
                                     allow_redirects=False, stream=True)
            except requests.RequestException as e:
                raise NetworkError(f"request to {url} failed: {e}")
            location = r.headers.get("Location")
            if r.status_code in REDIRECT_STATUSES and location:
                r.close()
                if hops >= self.max_redirects:
                    raise UpstreamFetchError(r.status_code, f"too many redirects fetching {url}")
                hops += 1
                url = urljoin(url, location)
                logger.debug("Following redirect {} to {}", hops, url)
                continue
            if r.status_code != 200:
                r.close()
                raise UpstreamFetchError(r.status_code, f"failed to download {url}: {r.status_code} {r.reason}")
            return r

    def _read_body(self, resp, url: str, deadline: float) -> bytes:
        chunks = []
        try:
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                self._remaining(url, deadline)
                chunks.append(chunk)
        except requests.RequestException as e:
            raise NetworkError(f"download of {url} failed: {e}")
        finally:
            resp.close()
        return b"".join(chunks)
