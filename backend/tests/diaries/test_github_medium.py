import base64
import hashlib
import json
from datetime import datetime, timezone

import httpx
import pytest

from diaries.application.store import DiaryStore
from diaries.domain.entities import DiaryEntry
from diaries.infrastructure.github_medium import (
    RAW_MEDIA_TYPE,
    GitHubBackingMedium,
    GitHubConfig,
)
from shared.exceptions import BackingMediumUnavailableError, ConflictError, NotFoundError

CONTENTS_PREFIX = "/repos/alice/diaries/contents/"


class FakeGitHub:
    """Just enough of the contents API to exercise the medium."""

    def __init__(self):
        self.files: dict[str, tuple[bytes, str]] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(CONTENTS_PREFIX)
        if request.method == "GET":
            return self._get(request, path)
        if request.method == "PUT":
            return self._put(request, path)
        return httpx.Response(405)

    def _get(self, request, path):
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        data, sha = self.files[path]
        if request.headers.get("accept") == RAW_MEDIA_TYPE:
            return httpx.Response(200, content=data)
        return httpx.Response(
            200,
            json={
                "sha": sha,
                "encoding": "base64",
                "content": base64.encodebytes(data).decode("ascii"),
            },
        )

    def _put(self, request, path):
        body = json.loads(request.content)
        current = self.files.get(path)
        if current and "sha" not in body:
            return httpx.Response(422, json={"message": "sha wasn't supplied"})
        if body.get("sha") != (current[1] if current else None):
            return httpx.Response(409, json={"message": "does not match"})
        data = base64.b64decode(body["content"])
        sha = hashlib.sha1(data + body["message"].encode()).hexdigest()
        self.files[path] = (data, sha)
        return httpx.Response(200 if current else 201, json={"content": {"path": path, "sha": sha}})


def _entry(slug: str) -> DiaryEntry:
    return DiaryEntry(
        slug=slug,
        partner1="Alice",
        partner2="Bob",
        created_at=datetime(2024, 2, 14, tzinfo=timezone.utc),
        payload_key=f"diaries/{slug}.html",
    )


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
async def gh_medium(github):
    config = GitHubConfig(repository="alice/diaries", token="t0ken", branch="pages")
    medium = GitHubBackingMedium(config, transport=httpx.MockTransport(github))
    yield medium
    await medium.close()


async def test_missing_index_is_empty(gh_medium):
    snapshot = await gh_medium.fetch_index()
    assert snapshot.entries == {}
    assert snapshot.revision is None


async def test_requests_target_branch_with_token(gh_medium, github):
    await gh_medium.fetch_index()
    request = github.requests[-1]
    assert request.url.params["ref"] == "pages"
    assert request.headers["authorization"] == "Bearer t0ken"


async def test_index_round_trip(gh_medium, github):
    revision = await gh_medium.write_index({"a-b": _entry("a-b")}, None)
    assert revision == github.files["index.json"][1]

    snapshot = await gh_medium.fetch_index()
    assert snapshot.revision == revision
    assert snapshot.entries == {"a-b": _entry("a-b")}

    put = json.loads(github.requests[0].content)
    assert put["branch"] == "pages"


async def test_stale_index_write_conflicts(gh_medium):
    first = await gh_medium.write_index({"a-b": _entry("a-b")}, None)
    await gh_medium.write_index({"a-b": _entry("a-b"), "c-d": _entry("c-d")}, first)
    with pytest.raises(ConflictError):
        await gh_medium.write_index({"e-f": _entry("e-f")}, first)


async def test_initial_write_over_existing_index_conflicts(gh_medium):
    await gh_medium.write_index({"a-b": _entry("a-b")}, None)
    with pytest.raises(ConflictError):
        await gh_medium.write_index({"c-d": _entry("c-d")}, None)


async def test_payload_round_trip_and_overwrite(gh_medium):
    assert await gh_medium.fetch_payload("diaries/a-b.html") is None
    await gh_medium.write_payload("diaries/a-b.html", b"v1")
    await gh_medium.write_payload("diaries/a-b.html", b"v2")
    assert await gh_medium.fetch_payload("diaries/a-b.html") == b"v2"


async def test_server_error_is_unavailable():
    medium = GitHubBackingMedium(
        GitHubConfig(repository="alice/diaries"),
        transport=httpx.MockTransport(lambda request: httpx.Response(502)),
    )
    with pytest.raises(BackingMediumUnavailableError):
        await medium.fetch_index()
    with pytest.raises(BackingMediumUnavailableError):
        await medium.write_payload("diaries/a-b.html", b"data")
    await medium.close()


async def test_transport_error_is_unavailable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    medium = GitHubBackingMedium(
        GitHubConfig(repository="alice/diaries"), transport=httpx.MockTransport(refuse)
    )
    with pytest.raises(BackingMediumUnavailableError):
        await medium.fetch_index()
    await medium.close()


def test_repository_is_required():
    with pytest.raises(ValueError):
        GitHubBackingMedium(GitHubConfig(repository=""))


async def test_store_over_github(gh_medium, github):
    store = DiaryStore(gh_medium)
    first = await store.create("Alice", "Bob", b"<html>one</html>")
    second = await store.create("Alice", "Bob", b"<html>two</html>")
    assert (first.slug, second.slug) == ("alice-bob", "alice-bob-1")
    assert (await store.resolve("alice-bob")).content == b"<html>one</html>"
    assert second.payload_key in github.files


async def test_store_resolve_fails_closed_on_outage():
    store = DiaryStore(
        GitHubBackingMedium(
            GitHubConfig(repository="alice/diaries"),
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
    )
    with pytest.raises(NotFoundError):
        await store.resolve("alice-bob")
    await store.close()


def _directory_listing(request):
    return httpx.Response(200, json=[{"name": "index.json", "type": "file"}])


async def test_directory_listing_index_is_unavailable():
    medium = GitHubBackingMedium(
        GitHubConfig(repository="alice/diaries"),
        transport=httpx.MockTransport(_directory_listing),
    )
    with pytest.raises(BackingMediumUnavailableError):
        await medium.fetch_index()
    with pytest.raises(BackingMediumUnavailableError):
        await medium.write_payload("diaries/a-b.html", b"data")
    await medium.close()


async def test_non_json_response_is_unavailable():
    medium = GitHubBackingMedium(
        GitHubConfig(repository="alice/diaries"),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
    )
    with pytest.raises(BackingMediumUnavailableError):
        await medium.fetch_index()
    await medium.close()


async def test_store_resolve_fails_closed_on_directory_listing():
    store = DiaryStore(
        GitHubBackingMedium(
            GitHubConfig(repository="alice/diaries"),
            transport=httpx.MockTransport(_directory_listing),
        )
    )
    with pytest.raises(NotFoundError):
        await store.resolve("alice-bob")
    await store.close()
