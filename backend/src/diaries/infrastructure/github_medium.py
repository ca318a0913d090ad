import base64
from dataclasses import dataclass

import httpx

from diaries.domain.entities import DiaryEntry, IndexSnapshot
from diaries.infrastructure.index_codec import decode_index, encode_index
from shared.config import Settings
from shared.exceptions import BackingMediumUnavailableError, ConflictError
from shared.logging import get_logger

logger = get_logger(__name__)

RAW_MEDIA_TYPE = "application/vnd.github.raw+json"


@dataclass(frozen=True)
class GitHubConfig:
    repository: str
    token: str = ""
    branch: str = "main"
    api_url: str = "https://api.github.com"
    index_path: str = "index.json"
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitHubConfig":
        return cls(
            repository=settings.GITHUB_REPOSITORY,
            token=settings.GITHUB_TOKEN,
            branch=settings.GITHUB_BRANCH,
            api_url=settings.GITHUB_API_URL,
            index_path=settings.INDEX_KEY,
            timeout_seconds=settings.GITHUB_TIMEOUT_SECONDS,
        )


class GitHubBackingMedium:
    """Uses a GitHub repository as the document database.

    Every stored object is a file committed through the contents API, and the
    index file's blob sha serves as its revision token: GitHub rejects a PUT
    whose sha no longer matches the branch head.
    """

    def __init__(self, config: GitHubConfig, transport: httpx.AsyncBaseTransport | None = None):
        if not config.repository:
            raise ValueError("GitHub repository is not configured")
        self.config = config
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers=headers,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_index(self) -> IndexSnapshot:
        resp = await self._get(self.config.index_path)
        if resp is None:
            return IndexSnapshot()
        body = _json_object(resp, self.config.index_path)
        try:
            sha = body["sha"]
            if body.get("encoding") == "base64":
                raw = base64.b64decode(body["content"])
            else:
                # Files over 1 MB come back without inline content
                raw_resp = await self._get(self.config.index_path, accept=RAW_MEDIA_TYPE)
                raw = raw_resp.content if raw_resp is not None else b""
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise BackingMediumUnavailableError(f"Unexpected index response: {exc}") from exc
        return IndexSnapshot(entries=decode_index(raw), revision=sha)

    async def write_index(
        self, entries: dict[str, DiaryEntry], previous_revision: str | None
    ) -> str:
        resp = await self._put(
            self.config.index_path,
            encode_index(entries),
            message=f"Update diary index ({len(entries)} entries)",
            sha=previous_revision,
        )
        if resp.status_code in (409, 422):
            raise ConflictError(f"Index revision {previous_revision} is stale")
        _raise_for_status(resp, self.config.index_path)
        try:
            return _json_object(resp, self.config.index_path)["content"]["sha"]
        except (KeyError, TypeError) as exc:
            raise BackingMediumUnavailableError(f"Unexpected index write response: {exc}") from exc

    async def write_payload(self, key: str, data: bytes) -> None:
        existing = await self._get(key)
        sha = _json_object(existing, key).get("sha") if existing is not None else None
        if sha:
            logger.warning("Overwriting unindexed payload %s", key)
        resp = await self._put(key, data, message=f"Add {key}", sha=sha)
        _raise_for_status(resp, key)

    async def fetch_payload(self, key: str) -> bytes | None:
        resp = await self._get(key, accept=RAW_MEDIA_TYPE)
        return resp.content if resp is not None else None

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.config.repository}/contents/{path}"

    async def _get(self, path: str, accept: str | None = None) -> httpx.Response | None:
        headers = {"Accept": accept} if accept else None
        try:
            resp = await self._client.get(
                self._contents_url(path),
                params={"ref": self.config.branch},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise BackingMediumUnavailableError(f"GET {path} failed: {exc}") from exc
        if resp.status_code == 404:
            return None
        _raise_for_status(resp, path)
        return resp

    async def _put(self, path: str, data: bytes, message: str, sha: str | None) -> httpx.Response:
        body = {
            "message": message,
            "content": base64.b64encode(data).decode("ascii"),
            "branch": self.config.branch,
        }
        if sha:
            body["sha"] = sha
        try:
            return await self._client.put(self._contents_url(path), json=body)
        except httpx.HTTPError as exc:
            raise BackingMediumUnavailableError(f"PUT {path} failed: {exc}") from exc


def _raise_for_status(resp: httpx.Response, path: str) -> None:
    if resp.is_error:
        raise BackingMediumUnavailableError(
            f"GitHub returned {resp.status_code} for {path}"
        )


def _json_object(resp: httpx.Response, path: str) -> dict:
    try:
        body = resp.json()
    except ValueError as exc:
        raise BackingMediumUnavailableError(f"Unreadable response for {path}: {exc}") from exc
    if not isinstance(body, dict):
        raise BackingMediumUnavailableError(f"Unexpected response for {path}: not a file")
    return body
