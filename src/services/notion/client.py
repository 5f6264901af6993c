# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async client for the Notion REST API.

Reads the three things the curriculum sync needs from Notion:
- Page metadata (title, icon)
- Lesson content as a tree of typed nodes
- Course structure (modules and their lessons) from a navigation page

The client retries connection errors, timeouts, rate limiting (429) and
server errors with exponential backoff, spaces requests to stay under the
configured request rate, and caches page and block-list responses for a
short time.

Example:
    client = NotionClient(get_settings().notion)
    page = await client.fetch_page("19f4c6153ed980429bb7dc3d65091e39")
    nodes = await client.fetch_block_children(page.id, max_depth=3)
    await client.close()
"""

import asyncio
import logging
import re
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from src.core.config.courses import CourseConfig
from src.core.config.settings import NotionSettings
from src.domains.curriculum.nodes import (
    ChildPageNode,
    ExternalNode,
    LinkToPageNode,
    parse_node,
    parse_tree,
)
from src.services.notion.exceptions import NotionAPIError, NotionNotFoundError
from src.services.notion.models import (
    CourseStructure,
    LessonOutline,
    ModuleOutline,
    PageLink,
    PageMetadata,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NUMBERED_TITLE = re.compile(r"^\d+[.:\-\s]")
_RESOURCE_KEYWORDS = (
    "resource",
    "image",
    "software",
    "feedback",
    "style guide",
    "template",
    "download",
    "accreditation",
    "administration",
)
_CONTENT_KEYWORDS = ("module", "lesson", "unit", "week")
_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def is_handbook_title(title: str) -> bool:
    """Whether a navigation entry is a handbook rather than a module."""
    lower = title.lower()
    return "handbook" in lower or ("assessment" in lower and "module" not in lower)


def is_resource_title(title: str) -> bool:
    """Whether a navigation entry is support material rather than a module.

    Titles that name a module, lesson, unit or week, or that start with a
    section number, are never resources.
    """
    lower = title.lower()
    if any(keyword in lower for keyword in _CONTENT_KEYWORDS):
        return False
    if _NUMBERED_TITLE.match(title):
        return False
    return any(keyword in lower for keyword in _RESOURCE_KEYWORDS) or title.startswith("📂")


def _page_title(properties: dict[str, Any]) -> str:
    for key in ("title", "Name"):
        runs = (properties.get(key) or {}).get("title") or []
        if runs and runs[0].get("plain_text"):
            return runs[0]["plain_text"]
    return "Untitled"


class NotionClient:
    """Async HTTP client for the Notion API.

    Attributes:
        settings: Notion API configuration.
    """

    def __init__(
        self,
        settings: NotionSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Notion client.

        Args:
            settings: Notion API configuration.
            client: Preconfigured HTTP client. Built from settings if omitted.
        """
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            headers=settings.auth_headers,
            timeout=settings.timeout,
        )
        self._min_interval = (
            1.0 / settings.requests_per_second if settings.requests_per_second > 0 else 0.0
        )
        self._last_request_at: float | None = None
        self._throttle_lock = asyncio.Lock()
        self._cache: dict[str, tuple[float, Any]] = {}

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "NotionClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def clear_cache(self) -> None:
        """Drop all cached responses so the next calls refetch."""
        logger.debug("Clearing %d cached Notion responses", len(self._cache))
        self._cache.clear()

    # =========================================================================
    # Public API
    # =========================================================================

    async def fetch_page(self, page_id: str) -> PageMetadata:
        """Fetch a page's metadata.

        Args:
            page_id: Notion page id.

        Returns:
            Page metadata with title and emoji icon.

        Raises:
            NotionNotFoundError: If the page does not exist.
            NotionAPIError: If the request fails after retries.
        """
        data = await self._cached(
            f"page:{page_id}",
            lambda: self._request("GET", f"/pages/{page_id}", object_id=page_id),
        )

        icon_data = data.get("icon") or {}
        return PageMetadata(
            id=data.get("id", page_id),
            title=_page_title(data.get("properties") or {}),
            icon=icon_data.get("emoji") if icon_data.get("type") == "emoji" else None,
            url=data.get("url"),
            last_edited_time=data.get("last_edited_time"),
        )

    async def fetch_block_children(
        self, block_id: str, max_depth: int = 3
    ) -> list[ExternalNode]:
        """Fetch the block tree below a page or block.

        Children are expanded breadth first for up to ``max_depth`` levels
        below the top-level blocks. Sub-pages are not expanded. Any failed
        request fails the whole call, so callers never see a partial tree.

        Args:
            block_id: Page or block id.
            max_depth: Levels of nesting to expand below the top level.

        Returns:
            Top-level nodes with their children attached.

        Raises:
            NotionNotFoundError: If the page or a block does not exist.
            NotionAPIError: If any request fails after retries.
        """
        roots = [dict(raw) for raw in await self._list_children(block_id)]

        pending: deque[tuple[dict[str, Any], int]] = deque((raw, 1) for raw in roots)
        while pending:
            raw, depth = pending.popleft()
            if not raw.get("has_children") or raw.get("type") == "child_page":
                continue
            if depth > max_depth:
                continue

            children = [dict(child) for child in await self._list_children(raw["id"])]
            raw["children"] = children
            pending.extend((child, depth + 1) for child in children)

        return parse_tree(roots)

    async def fetch_course_structure(self, course: CourseConfig) -> CourseStructure:
        """Read a course's modules and lessons from its navigation page.

        Sub-pages and page links on the navigation page become modules,
        except handbooks and resource pages. The sub-pages and page links of
        each module page become its lessons.

        Args:
            course: Course whose navigation page is read.

        Returns:
            Modules with their lessons, plus handbooks and resources.

        Raises:
            NotionNotFoundError: If a page does not exist.
            NotionAPIError: If any request fails after retries.
        """
        logger.info("Fetching course structure for %s (%s)", course.slug, course.page_id)

        structure = CourseStructure()
        for link in await self._list_page_links(course.page_id):
            if is_handbook_title(link.title):
                structure.handbooks.append(link)
            elif is_resource_title(link.title):
                structure.resources.append(link)
            else:
                structure.modules.append(
                    ModuleOutline(id=link.id, title=link.title, icon=link.icon)
                )

        for module in structure.modules:
            module.lessons = [
                LessonOutline(id=link.id, title=link.title, icon=link.icon)
                for link in await self._list_page_links(module.id)
            ]

        logger.info(
            "Found %d modules, %d resources, %d handbooks for %s",
            len(structure.modules),
            len(structure.resources),
            len(structure.handbooks),
            course.slug,
        )
        return structure

    # =========================================================================
    # Listing helpers
    # =========================================================================

    async def _list_children(self, block_id: str) -> list[dict[str, Any]]:
        """All direct children of a block, following pagination."""

        async def load() -> list[dict[str, Any]]:
            results: list[dict[str, Any]] = []
            cursor: str | None = None
            while True:
                params: dict[str, Any] = {"page_size": self.settings.page_size}
                if cursor:
                    params["start_cursor"] = cursor
                data = await self._request(
                    "GET", f"/blocks/{block_id}/children", params=params, object_id=block_id
                )
                results.extend(data.get("results") or [])
                cursor = data.get("next_cursor") if data.get("has_more") else None
                if not cursor:
                    return results

        return await self._cached(f"blocks:{block_id}", load)

    async def _list_page_links(self, page_id: str) -> list[PageLink]:
        """Sub-pages and linked pages listed directly on a page, in order."""
        links: list[PageLink] = []
        for raw in await self._list_children(page_id):
            node = parse_node(raw)
            if isinstance(node, ChildPageNode):
                links.append(PageLink(id=node.id, title=node.child_page.title))
            elif isinstance(node, LinkToPageNode) and node.link_to_page.page_id:
                page = await self.fetch_page(node.link_to_page.page_id)
                links.append(PageLink(id=page.id, title=page.title, icon=page.icon))
        return links

    # =========================================================================
    # Transport
    # =========================================================================

    async def _cached(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        ttl = self.settings.cache_ttl_seconds
        if ttl > 0:
            entry = self._cache.get(key)
            if entry is not None and time.monotonic() - entry[0] < ttl:
                return entry[1]

        value = await loader()
        if ttl > 0:
            self._cache[key] = (time.monotonic(), value)
        return value

    async def _throttle(self) -> None:
        if not self._min_interval:
            return
        async with self._throttle_lock:
            now = time.monotonic()
            if self._last_request_at is not None:
                wait = self._min_interval - (now - self._last_request_at)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request_at = time.monotonic()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        object_id: str | None = None,
    ) -> dict[str, Any]:
        """Send a request, retrying transient failures.

        Raises:
            NotionNotFoundError: On a 404 response.
            NotionAPIError: On any other error response, or when retries
                are exhausted.
        """
        delay = self.settings.retry_delay
        attempts = self.settings.max_retries + 1

        for attempt in range(1, attempts + 1):
            await self._throttle()
            try:
                response = await self._client.request(method, path, params=params)
            except httpx.TransportError as e:
                if attempt < attempts:
                    logger.warning(
                        "Notion request %s %s failed (%s), retrying in %.1fs (%d left)",
                        method,
                        path,
                        type(e).__name__,
                        delay,
                        attempts - attempt,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                logger.error("Notion API connection error: %s", str(e))
                raise NotionAPIError(
                    message=f"Failed to connect to Notion API: {e}",
                    details={"error_type": type(e).__name__, "path": path},
                ) from e

            if response.status_code in _RETRYABLE_STATUS and attempt < attempts:
                wait = delay
                retry_after = response.headers.get("Retry-After")
                if response.status_code == 429 and retry_after and retry_after.isdigit():
                    wait = float(retry_after)
                logger.warning(
                    "Notion API returned %d for %s, retrying in %.1fs (%d left)",
                    response.status_code,
                    path,
                    wait,
                    attempts - attempt,
                )
                await asyncio.sleep(wait)
                delay *= 2
                continue

            if response.status_code == 404:
                raise NotionNotFoundError(object_id or path, response_body=response.text)

            if response.is_error:
                raise NotionAPIError(
                    message=self._error_message(response),
                    status_code=response.status_code,
                    response_body=response.text,
                )

            return response.json()

        # Unreachable: the last attempt either returns or raises.
        raise NotionAPIError(message=f"Notion request failed: {method} {path}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Notion API error {response.status_code}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"Notion API error {response.status_code}"
