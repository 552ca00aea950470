from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from psr.core.config import StoreConfig
from psr.core.result import Err, Ok
from psr.output.console import MockConsole
from psr.services.plugin.descriptor import PluginDescriptor
from psr.services.release.orchestrator import ReleaseOrchestrator
from psr.services.release_errors import StoreRequestFailed
from psr.services.store import http as http_mod
from psr.services.store.http import TOKEN_HEADER, HttpStoreClient
from psr.services.store.model import BinaryRecord, ChangelogEntry, PlatformVersion


class FakeStore:
    """Minimal in-process store API for httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.binaries: list[dict] = [
            {
                "id": 1,
                "version": "1.0.0",
                "changelogs": [
                    {"id": 11, "locale": {"name": "de_DE"}, "text": "alt"},
                    {"id": 12, "locale": {"name": "en_GB"}, "text": "old"},
                ],
                "compatibleSoftwareVersions": [],
            }
        ]
        self.reviews: list[dict] = []
        self.append_review = True
        self.fail: dict[tuple[str, str], int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.fail:
            return httpx.Response(self.fail[key], json={"message": "store is down"})

        if key == ("POST", "/accesstokens"):
            body = json.loads(request.content)
            if body["password"] != "secret":
                return httpx.Response(401, json={"message": "Invalid credentials"})
            return httpx.Response(200, json={"token": "tok", "userId": 7})

        if request.headers.get(TOKEN_HEADER) != "tok":
            return httpx.Response(403)

        match key:
            case ("GET", "/producers"):
                assert request.url.params["companyId"] == "7"
                return httpx.Response(200, json=[{"id": 3}])
            case ("GET", "/plugins"):
                return httpx.Response(
                    200,
                    json=[
                        {"id": 41, "name": "MyPluginExtra"},
                        {"id": 42, "name": "MyPlugin", "isPartialEncryptionEnabled": False},
                    ],
                )
            case ("GET", "/plugins/42/binaries"):
                return httpx.Response(200, json=self.binaries)
            case ("GET", "/plugins/42/reviews"):
                return httpx.Response(200, json=self.reviews)
            case ("PUT", "/plugins/42"):
                return httpx.Response(200, json=json.loads(request.content))
            case ("POST", "/plugins/42/binaries"):
                created = {
                    "id": 2,
                    "version": "",
                    "changelogs": [
                        {"id": 21, "locale": {"name": "de_DE"}, "text": ""},
                        {"id": 22, "locale": {"name": "en_GB"}, "text": ""},
                    ],
                }
                self.binaries.append(created)
                return httpx.Response(200, json=created)
            case ("POST", "/plugins/42/binaries/1/file"):
                return httpx.Response(200, json={})
            case ("PUT", "/plugins/42/binaries/2"):
                return httpx.Response(200, json=json.loads(request.content))
            case ("POST", "/plugins/42/reviews"):
                if not self.append_review:
                    return httpx.Response(200, json={})
                self.reviews.append({"id": 5, "status": {"name": "waiting"}, "comment": ""})
                return httpx.Response(200, json={})
            case ("GET", "/pluginstatics/all"):
                return httpx.Response(
                    200,
                    json={
                        "softwareVersions": [
                            {"id": 1, "name": "5.2.0", "selectable": True},
                            {"id": 2, "name": "5.3.0", "selectable": False},
                        ]
                    },
                )
        return httpx.Response(404, json={"message": f"no route {key}"})

    def paths(self, method: str) -> list[str]:
        return [r.url.path for r in self.requests if r.method == method]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    slept: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        slept.append(seconds)

    monkeypatch.setattr(http_mod, "sleep", fake_sleep)
    return slept


def _client(store: FakeStore, password: str = "secret", **config: object) -> HttpStoreClient:
    return HttpStoreClient(
        "dev@example.com",
        password,
        StoreConfig(base_url="https://store.test", **config),
        transport=httpx.MockTransport(store),
    )


def _run(coro):
    return asyncio.run(coro)


def test_find_plugin_with_binaries_and_reviews(store: FakeStore) -> None:
    async def go():
        async with _client(store) as client:
            return await client.find_plugin("MyPlugin")

    result = _run(go())

    assert isinstance(result, Ok)
    plugin = result.value
    assert plugin is not None
    assert plugin.id == 42
    assert plugin.binaries[0].version == "1.0.0"
    assert plugin.binaries[0].changelogs[0] == ChangelogEntry(locale="de_DE", text="alt", id=11)
    # Login happens once per client.
    assert store.paths("POST") == ["/accesstokens"]


def test_find_unknown_plugin(store: FakeStore) -> None:
    async def go():
        async with _client(store) as client:
            return await client.find_plugin("Unknown")

    assert _run(go()) == Ok(None)


def test_login_failure_is_store_error(store: FakeStore) -> None:
    async def go():
        async with _client(store, password="wrong") as client:
            return await client.find_plugin("MyPlugin")

    result = _run(go())
    assert isinstance(result, Err)
    assert result.error.status == 401
    assert result.error.message == "Invalid credentials"
    assert str(result.error) == "HTTP 401: Invalid credentials"


def test_server_error_is_store_error(store: FakeStore) -> None:
    store.fail[("GET", "/pluginstatics/all")] = 503

    async def go():
        async with _client(store) as client:
            return await client.platform_versions()

    result = _run(go())
    assert isinstance(result, Err)
    assert result.error.status == 503
    assert result.error.url == "/pluginstatics/all"


def test_transport_error_is_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def go():
        client = HttpStoreClient(
            "dev", "secret", StoreConfig(), transport=httpx.MockTransport(handler)
        )
        try:
            return await client.login()
        finally:
            await client.aclose()

    result = _run(go())
    assert isinstance(result, Err)
    assert "connection refused" in result.error.message


def test_upload_enable_encryption_and_save(store: FakeStore, tmp_path: Path) -> None:
    archive = tmp_path / "MyPlugin.zip"
    archive.write_bytes(b"PK\x05\x06" + b"\x00" * 18)

    async def go():
        async with _client(store) as client:
            plugin = (await client.find_plugin("MyPlugin")).unwrap()
            plugin = (await client.enable_partial_encryption(plugin)).unwrap()
            plugin = (await client.upload_binary(plugin, archive)).unwrap()
            binary = plugin.latest_binary
            assert binary is not None
            filled = BinaryRecord(
                id=binary.id,
                version="1.1.0",
                changelogs=tuple(
                    ChangelogEntry(locale=c.locale, text="x", id=c.id) for c in binary.changelogs
                ),
                compatible_versions=(PlatformVersion("5.2.0", selectable=True, id=1),),
            )
            return await client.save_plugin_binary(plugin, filled)

    result = _run(go())

    assert isinstance(result, Ok)
    plugin = result.value
    assert plugin.partial_encryption
    assert plugin.latest_binary is not None
    assert plugin.latest_binary.version == "1.1.0"
    assert plugin.latest_binary.compatible_version_names == ("5.2.0",)

    put_encryption = next(r for r in store.requests if r.url.path == "/plugins/42")
    assert json.loads(put_encryption.content)["isPartialEncryptionEnabled"] is True
    upload = next(r for r in store.requests if r.url.path == "/plugins/42/binaries" and r.method == "POST")
    assert b'filename="MyPlugin.zip"' in upload.content
    save = next(r for r in store.requests if r.url.path == "/plugins/42/binaries/2")
    saved_body = json.loads(save.content)
    assert saved_body["changelogs"][0] == {"id": 21, "locale": {"name": "de_DE"}, "text": "x"}


def test_update_binary_keeps_identity(store: FakeStore, tmp_path: Path) -> None:
    archive = tmp_path / "MyPlugin.zip"
    archive.write_bytes(b"zip")

    async def go():
        async with _client(store) as client:
            plugin = (await client.find_plugin("MyPlugin")).unwrap()
            return await client.update_binary(plugin, plugin.binaries[0], archive)

    result = _run(go())
    assert isinstance(result, Ok)
    assert result.value.latest_binary is not None
    assert result.value.latest_binary.id == 1
    assert "/plugins/42/binaries" not in store.paths("POST")


def test_review_is_polled_until_decided(store: FakeStore, no_sleep: list[float]) -> None:
    statuses = iter(["waiting", "approved"])
    original = store.__call__

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path == "/plugins/42/reviews" and store.reviews:
            store.reviews[-1]["status"] = {"name": next(statuses, "approved")}
        return original(request)

    async def go():
        client = HttpStoreClient(
            "dev",
            "secret",
            StoreConfig(review_poll_interval=2.5),
            transport=httpx.MockTransport(handler),
        )
        async with client:
            plugin = (await client.find_plugin("MyPlugin")).unwrap()
            return await client.request_binary_review(plugin)

    result = _run(go())

    assert isinstance(result, Ok)
    review = result.value.latest_review
    assert review is not None
    assert review.status == "approved"
    assert no_sleep == [2.5]


def test_review_polling_gives_up(store: FakeStore, no_sleep: list[float]) -> None:
    async def go():
        async with _client(store, review_poll_attempts=3, review_poll_interval=1.0) as client:
            plugin = (await client.find_plugin("MyPlugin")).unwrap()
            return await client.request_binary_review(plugin)

    result = _run(go())

    assert isinstance(result, Ok)
    review = result.value.latest_review
    assert review is not None
    assert review.status == "waiting"
    assert no_sleep == [1.0, 1.0]


def _approved_earlier_release(store: FakeStore) -> None:
    store.reviews = [{"id": 1, "status": {"name": "approved"}, "comment": "old"}]
    store.append_review = False


def test_review_request_without_new_review_is_error(
    store: FakeStore, no_sleep: list[float]
) -> None:
    _approved_earlier_release(store)

    async def go():
        async with _client(store, review_poll_attempts=2, review_poll_interval=1.0) as client:
            plugin = (await client.find_plugin("MyPlugin")).unwrap()
            assert plugin is not None
            assert plugin.latest_review is not None and plugin.latest_review.approved
            return await client.request_binary_review(plugin)

    result = _run(go())

    assert isinstance(result, Err)
    assert result.error.message == "review request produced no new review"
    assert result.error.url == "/plugins/42/reviews"
    assert no_sleep == [1.0]


def test_earlier_approval_does_not_publish_new_release(
    store: FakeStore, tmp_path: Path
) -> None:
    _approved_earlier_release(store)
    archive = tmp_path / "MyPlugin.zip"
    archive.write_bytes(b"zip")
    descriptor = PluginDescriptor(name="MyPlugin", version="1.1.0", changelogs={"en": "New"})

    async def go():
        async with _client(store, review_poll_attempts=2) as client:
            return await ReleaseOrchestrator(client, MockConsole()).release(descriptor, archive)

    result = _run(go())

    assert isinstance(result, Err)
    assert isinstance(result.error, StoreRequestFailed)
    assert result.error.operation == "request review"
    assert "/plugins/42/binaries/2" in store.paths("PUT")


def test_platform_versions_are_cached(store: FakeStore) -> None:
    async def go():
        async with _client(store) as client:
            first = await client.platform_versions()
            second = await client.platform_versions()
            return first, second

    first, second = _run(go())
    assert first == second
    assert first.unwrap() == (
        PlatformVersion("5.2.0", selectable=True, id=1),
        PlatformVersion("5.3.0", selectable=False, id=2),
    )
    assert store.paths("GET").count("/pluginstatics/all") == 1
