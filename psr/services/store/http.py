"""HTTP implementation of StoreClient on top of httpx.

Handles:
- Login and the session token header
- Plugin lookup through the account's producer
- Binary upload/replace (multipart) and metadata save
- Review request, blocking until the store reports a non-pending status
"""

from __future__ import annotations

from asyncio import sleep
from dataclasses import replace
from pathlib import Path
from typing import Any

import httpx

from psr.core.config import StoreConfig
from psr.core.result import Err, Ok, Result
from psr.core.structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_raw_str,
    get_str,
)
from psr.services.release_errors import StoreError
from psr.services.store.client import DEFAULT_EXPAND
from psr.services.store.model import (
    BinaryRecord,
    ChangelogEntry,
    PlatformVersion,
    PluginRecord,
    ReviewRecord,
)

__all__ = ["HttpStoreClient", "PENDING_REVIEW_STATUSES", "TOKEN_HEADER"]

TOKEN_HEADER = "X-Shopware-Token"
PENDING_REVIEW_STATUSES = frozenset({"pending", "waiting", "inprogress"})
_PLUGIN_PAGE_SIZE = 100


def _name_of(obj: object) -> str:
    """Store enums arrive either as {"name": ...} or as a plain string."""
    if isinstance(obj, str):
        return obj
    d = as_str_dict(obj)
    if d is None:
        return ""
    return get_raw_str(d, "name")


def _parse_platform_version(d: StrDict) -> PlatformVersion:
    return PlatformVersion(
        name=get_raw_str(d, "name"),
        selectable=get_bool(d, "selectable") or False,
        id=get_int(d, "id"),
    )


def _parse_binary(d: StrDict) -> BinaryRecord:
    changelogs: list[ChangelogEntry] = []
    for item in get_list(d, "changelogs") or []:
        c = as_str_dict(item)
        if c is None:
            continue
        changelogs.append(
            ChangelogEntry(
                locale=_name_of(c.get("locale")),
                text=get_raw_str(c, "text"),
                id=get_int(c, "id"),
            )
        )

    versions: list[PlatformVersion] = []
    for item in get_list(d, "compatibleSoftwareVersions") or []:
        v = as_str_dict(item)
        if v is not None:
            versions.append(_parse_platform_version(v))

    return BinaryRecord(
        id=get_int(d, "id") or 0,
        version=get_raw_str(d, "version"),
        changelogs=tuple(changelogs),
        compatible_versions=tuple(versions),
    )


def _parse_review(d: StrDict) -> ReviewRecord:
    return ReviewRecord(
        id=get_int(d, "id") or 0,
        status=_name_of(d.get("status")),
        comment=get_raw_str(d, "comment"),
    )


def _dump_binary(binary: BinaryRecord, raw: StrDict | None) -> StrDict:
    body: StrDict = dict(raw or {})
    body["id"] = binary.id
    body["version"] = binary.version
    body["changelogs"] = [
        {"id": c.id, "locale": {"name": c.locale}, "text": c.text} for c in binary.changelogs
    ]
    body["compatibleSoftwareVersions"] = [
        {"id": v.id, "name": v.name, "selectable": v.selectable}
        for v in binary.compatible_versions
    ]
    return body


class HttpStoreClient:
    """StoreClient talking to the store's JSON API.

    Usage:
        async with HttpStoreClient(username, password, config.store) as client:
            found = await client.find_plugin("MyPlugin")
    """

    def __init__(
        self,
        username: str,
        password: str,
        config: StoreConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._username = username
        self._password = password
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._token: str | None = None
        self._user_id: int | None = None
        self._versions: tuple[PlatformVersion, ...] | None = None
        # Last payloads seen, sent back on PUT so unknown fields survive.
        self._raw_plugins: dict[int, StrDict] = {}
        self._raw_binaries: dict[int, StrDict] = {}

    async def __aenter__(self) -> HttpStoreClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- transport -----------------------------------------------------------

    async def _send(
        self, method: str, url: str, *, auth: bool = True, **kwargs: Any
    ) -> Result[object, StoreError]:
        headers: dict[str, str] = {}
        if auth:
            login = await self.login()
            if isinstance(login, Err):
                return login
            headers[TOKEN_HEADER] = login.value

        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException:
            return Err(StoreError(message="Request timed out", url=url))
        except httpx.HTTPError as e:
            return Err(StoreError(message=str(e) or type(e).__name__, url=url))

        if response.status_code >= 400:
            return Err(
                StoreError(
                    message=self._error_message(response),
                    status=response.status_code,
                    url=url,
                )
            )
        if not response.content:
            return Ok(None)
        try:
            return Ok(response.json())
        except ValueError as e:
            return Err(StoreError(message=f"JSON parse error: {e}", url=url))

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = as_str_dict(response.json())
        except ValueError:
            data = None
        if data is not None:
            detail = get_str(data, "message") or get_str(data, "detail")
            if detail:
                return detail
        return response.reason_phrase or "request failed"

    async def _get_list(self, url: str, **kwargs: Any) -> Result[list[StrDict], StoreError]:
        result = await self._send("GET", url, **kwargs)
        if isinstance(result, Err):
            return result
        items = as_obj_list(result.value)
        if items is None:
            return Err(StoreError(message="Expected JSON list", url=url))
        return Ok([d for d in (as_str_dict(i) for i in items) if d is not None])

    # -- session -------------------------------------------------------------

    async def login(self) -> Result[str, StoreError]:
        """Authenticate once and return the session token."""
        if self._token is not None:
            return Ok(self._token)

        result = await self._send(
            "POST",
            "/accesstokens",
            auth=False,
            json={"shopwareId": self._username, "password": self._password},
        )
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        token = get_str(data, "token")
        if token is None:
            return Err(StoreError(message="Login response carried no token", url="/accesstokens"))
        self._token = token
        self._user_id = get_int(data, "userId")
        return Ok(token)

    # -- StoreClient ---------------------------------------------------------

    async def find_plugin(
        self, name: str, expand: frozenset[str] = DEFAULT_EXPAND
    ) -> Result[PluginRecord | None, StoreError]:
        login = await self.login()
        if isinstance(login, Err):
            return login

        producers = await self._get_list("/producers", params={"companyId": self._user_id})
        if isinstance(producers, Err):
            return producers
        if not producers.value:
            return Ok(None)
        producer_id = get_int(producers.value[0], "id")

        plugins = await self._get_list(
            "/plugins",
            params={"producerId": producer_id, "limit": _PLUGIN_PAGE_SIZE, "search": name},
        )
        if isinstance(plugins, Err):
            return plugins
        raw = next((p for p in plugins.value if get_raw_str(p, "name") == name), None)
        if raw is None:
            return Ok(None)

        plugin_id = get_int(raw, "id") or 0
        self._raw_plugins[plugin_id] = raw
        plugin = PluginRecord(
            id=plugin_id,
            name=name,
            partial_encryption=get_bool(raw, "isPartialEncryptionEnabled") or False,
        )

        if "binaries" in expand:
            binaries = await self._fetch_binaries(plugin_id)
            if isinstance(binaries, Err):
                return binaries
            plugin = replace(plugin, binaries=binaries.value)
        if "reviews" in expand:
            reviews = await self._fetch_reviews(plugin_id)
            if isinstance(reviews, Err):
                return reviews
            plugin = replace(plugin, reviews=reviews.value)
        return Ok(plugin)

    async def _fetch_binaries(self, plugin_id: int) -> Result[tuple[BinaryRecord, ...], StoreError]:
        result = await self._get_list(f"/plugins/{plugin_id}/binaries")
        if isinstance(result, Err):
            return result
        binaries: list[BinaryRecord] = []
        for d in result.value:
            binary = _parse_binary(d)
            self._raw_binaries[binary.id] = d
            binaries.append(binary)
        return Ok(tuple(binaries))

    async def _fetch_reviews(self, plugin_id: int) -> Result[tuple[ReviewRecord, ...], StoreError]:
        result = await self._get_list(f"/plugins/{plugin_id}/reviews")
        if isinstance(result, Err):
            return result
        return Ok(tuple(_parse_review(d) for d in result.value))

    async def enable_partial_encryption(
        self, plugin: PluginRecord
    ) -> Result[PluginRecord, StoreError]:
        if plugin.partial_encryption:
            return Ok(plugin)
        body: StrDict = dict(self._raw_plugins.get(plugin.id, {"id": plugin.id}))
        body["isPartialEncryptionEnabled"] = True
        result = await self._send("PUT", f"/plugins/{plugin.id}", json=body)
        if isinstance(result, Err):
            return result
        self._raw_plugins[plugin.id] = as_str_dict(result.value) or body
        return Ok(replace(plugin, partial_encryption=True))

    async def _post_archive(self, url: str, archive: Path) -> Result[object, StoreError]:
        try:
            content = archive.read_bytes()
        except OSError as e:
            return Err(StoreError(message=f"Cannot read {archive}: {e}", url=url))
        files = {"file": (archive.name, content, "application/zip")}
        return await self._send("POST", url, files=files)

    async def _with_latest(
        self, plugin: PluginRecord, binary_id: int
    ) -> Result[PluginRecord, StoreError]:
        binaries = await self._fetch_binaries(plugin.id)
        if isinstance(binaries, Err):
            return binaries
        updated = replace(plugin, binaries=binaries.value)
        latest = updated.binary_by_id(binary_id)
        if latest is None:
            return Err(
                StoreError(
                    message=f"Binary {binary_id} missing after upload",
                    url=f"/plugins/{plugin.id}/binaries",
                )
            )
        return Ok(replace(updated, latest_binary=latest))

    async def upload_binary(
        self, plugin: PluginRecord, archive: Path
    ) -> Result[PluginRecord, StoreError]:
        url = f"/plugins/{plugin.id}/binaries"
        result = await self._post_archive(url, archive)
        if isinstance(result, Err):
            return result

        # The store answers with the created binary, sometimes wrapped in a list.
        created = as_str_dict(result.value)
        if created is None:
            items = as_obj_list(result.value) or []
            created = as_str_dict(items[-1]) if items else None
        binary_id = get_int(created, "id") if created is not None else None
        if binary_id is None:
            return Err(StoreError(message="Upload response carried no binary id", url=url))
        return await self._with_latest(plugin, binary_id)

    async def update_binary(
        self, plugin: PluginRecord, binary: BinaryRecord, archive: Path
    ) -> Result[PluginRecord, StoreError]:
        result = await self._post_archive(f"/plugins/{plugin.id}/binaries/{binary.id}/file", archive)
        if isinstance(result, Err):
            return result
        return await self._with_latest(plugin, binary.id)

    async def save_plugin_binary(
        self, plugin: PluginRecord, binary: BinaryRecord
    ) -> Result[PluginRecord, StoreError]:
        url = f"/plugins/{plugin.id}/binaries/{binary.id}"
        body = _dump_binary(binary, self._raw_binaries.get(binary.id))
        result = await self._send("PUT", url, json=body)
        if isinstance(result, Err):
            return result

        saved_raw = as_str_dict(result.value)
        saved = binary
        if saved_raw is not None:
            saved = _parse_binary(saved_raw)
            self._raw_binaries[saved.id] = saved_raw
        binaries = tuple(saved if b.id == saved.id else b for b in plugin.binaries)
        return Ok(replace(plugin, binaries=binaries, latest_binary=saved))

    async def request_binary_review(
        self, plugin: PluginRecord
    ) -> Result[PluginRecord, StoreError]:
        url = f"/plugins/{plugin.id}/reviews"
        result = await self._send("POST", url)
        if isinstance(result, Err):
            return result

        known = len(plugin.reviews)
        reviews: tuple[ReviewRecord, ...] = plugin.reviews
        for attempt in range(self._config.review_poll_attempts):
            fetched = await self._fetch_reviews(plugin.id)
            if isinstance(fetched, Err):
                return fetched
            reviews = fetched.value
            if len(reviews) > known and reviews[-1].status not in PENDING_REVIEW_STATUSES:
                break
            if attempt < self._config.review_poll_attempts - 1:
                await sleep(self._config.review_poll_interval)

        # Older reviews belong to earlier releases and must not decide this one.
        if len(reviews) <= known:
            return Err(StoreError(message="review request produced no new review", url=url))
        return Ok(replace(plugin, reviews=reviews))

    async def platform_versions(self) -> Result[tuple[PlatformVersion, ...], StoreError]:
        if self._versions is not None:
            return Ok(self._versions)

        result = await self._send("GET", "/pluginstatics/all")
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        versions = tuple(
            _parse_platform_version(d)
            for d in (as_str_dict(i) for i in get_list(data, "softwareVersions") or [])
            if d is not None
        )
        self._versions = versions
        return Ok(versions)
