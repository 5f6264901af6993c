# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Notion API client.

Requests go through httpx.MockTransport to a small in-memory Notion that
serves pages and paginated block children.
"""

from collections.abc import Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from src.core.config.courses import CourseConfig
from src.core.config.settings import NotionSettings
from src.domains.curriculum.nodes import ChildPageNode, ToggleNode
from src.services.notion import (
    NotionAPIError,
    NotionClient,
    NotionNotFoundError,
    is_handbook_title,
    is_resource_title,
)


def page(page_id: str, title: str, emoji: str | None = None) -> dict[str, Any]:
    return {
        "object": "page",
        "id": page_id,
        "url": f"https://www.notion.so/{page_id}",
        "icon": {"type": "emoji", "emoji": emoji} if emoji else None,
        "properties": {"title": {"title": [{"plain_text": title}]}},
    }


def block(block_id: str, kind: str = "paragraph", has_children: bool = False, **payload: Any) -> dict[str, Any]:
    return {
        "object": "block",
        "id": block_id,
        "type": kind,
        "has_children": has_children,
        kind: payload or {"rich_text": [{"plain_text": block_id}]},
    }


def child_page(page_id: str, title: str) -> dict[str, Any]:
    return block(page_id, "child_page", has_children=True, title=title)


def link_to_page(page_id: str) -> dict[str, Any]:
    return block(f"link-{page_id}", "link_to_page", type="page_id", page_id=page_id)


class FakeNotion:
    """In-memory Notion API.

    Attributes:
        pages: Page objects by id.
        children: Child blocks by parent id.
        page_size: Results per listing page.
        requests: Paths requested, in order.
        responses: Queued overrides returned before normal handling.
    """

    def __init__(self) -> None:
        self.pages: dict[str, dict[str, Any]] = {}
        self.children: dict[str, list[dict[str, Any]]] = {}
        self.page_size = 100
        self.requests: list[httpx.Request] = []
        self.responses: list[Callable[[httpx.Request], httpx.Response]] = []

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)(request)

        parts = request.url.path.strip("/").split("/")
        if parts[1] == "pages":
            found = self.pages.get(parts[2])
            if found is None:
                return httpx.Response(404, json={"object": "error", "message": "Not found"})
            return httpx.Response(200, json=found)

        if parts[1] == "blocks" and parts[3] == "children":
            items = self.children.get(parts[2])
            if items is None:
                return httpx.Response(404, json={"object": "error", "message": "Not found"})
            start = int(request.url.params.get("start_cursor") or 0)
            end = start + self.page_size
            has_more = end < len(items)
            return httpx.Response(
                200,
                json={
                    "object": "list",
                    "results": items[start:end],
                    "has_more": has_more,
                    "next_cursor": str(end) if has_more else None,
                },
            )

        return httpx.Response(400, json={"object": "error", "message": "Bad path"})


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def settings() -> NotionSettings:
    return NotionSettings(
        api_key="secret_test_token",
        retry_delay=0,
        requests_per_second=0,
        max_retries=2,
    )


@pytest_asyncio.fixture
async def client(notion, settings):
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(notion),
        base_url=settings.base_url,
        headers=settings.auth_headers,
    )
    notion_client = NotionClient(settings, client=http)
    yield notion_client
    await notion_client.close()


class TestFetchPage:
    """Tests for page metadata."""

    @pytest.mark.asyncio
    async def test_title_and_icon(self, client, notion):
        notion.pages["p1"] = page("p1", "Week 1: Basics", "🪚")

        metadata = await client.fetch_page("p1")

        assert metadata.id == "p1"
        assert metadata.title == "Week 1: Basics"
        assert metadata.icon == "🪚"
        assert notion.requests[0].headers["Notion-Version"] == "2022-06-28"
        assert notion.requests[0].headers["Authorization"] == "Bearer secret_test_token"

    @pytest.mark.asyncio
    async def test_name_property_and_file_icon(self, client, notion):
        notion.pages["p1"] = {
            "id": "p1",
            "icon": {"type": "external", "external": {"url": "https://x/icon.png"}},
            "properties": {"Name": {"title": [{"plain_text": "Joinery"}]}},
        }

        metadata = await client.fetch_page("p1")

        assert metadata.title == "Joinery"
        assert metadata.icon is None

    @pytest.mark.asyncio
    async def test_untitled(self, client, notion):
        notion.pages["p1"] = {"id": "p1", "properties": {}}

        assert (await client.fetch_page("p1")).title == "Untitled"

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        with pytest.raises(NotionNotFoundError) as exc_info:
            await client.fetch_page("missing")

        assert exc_info.value.object_id == "missing"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_cached_until_cleared(self, client, notion):
        notion.pages["p1"] = page("p1", "One")

        await client.fetch_page("p1")
        await client.fetch_page("p1")
        client.clear_cache()
        await client.fetch_page("p1")

        assert len(notion.requests) == 2

    @pytest.mark.asyncio
    async def test_cache_disabled(self, notion):
        notion.pages["p1"] = page("p1", "One")
        settings = NotionSettings(cache_ttl_seconds=0, requests_per_second=0)
        http = httpx.AsyncClient(transport=httpx.MockTransport(notion), base_url=settings.base_url)

        async with NotionClient(settings, client=http) as uncached:
            await uncached.fetch_page("p1")
            await uncached.fetch_page("p1")

        assert len(notion.requests) == 2


class TestFetchBlockChildren:
    """Tests for block tree fetching."""

    @pytest.mark.asyncio
    async def test_follows_pagination(self, client, notion):
        notion.page_size = 2
        notion.children["lesson"] = [block(f"b{i}") for i in range(5)]

        roots = await client.fetch_block_children("lesson")

        assert [node.id for node in roots] == ["b0", "b1", "b2", "b3", "b4"]
        assert len(notion.requests) == 3
        assert notion.requests[0].url.params["page_size"] == "100"
        assert notion.requests[1].url.params["start_cursor"] == "2"

    @pytest.mark.asyncio
    async def test_nested_children_attached(self, client, notion):
        notion.children["lesson"] = [block("t1", "toggle", has_children=True)]
        notion.children["t1"] = [block("p1"), block("p2")]

        roots = await client.fetch_block_children("lesson")

        assert isinstance(roots[0], ToggleNode)
        assert [child.id for child in roots[0].children] == ["p1", "p2"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_depth,expected_requests", [(0, 1), (1, 2), (2, 3), (5, 4)])
    async def test_depth_limit(self, client, notion, max_depth, expected_requests):
        """max_depth counts nested levels fetched below the top level."""
        notion.children["lesson"] = [block("a", "toggle", has_children=True)]
        notion.children["a"] = [block("b", "toggle", has_children=True)]
        notion.children["b"] = [block("c", "toggle", has_children=True)]
        notion.children["c"] = [block("d")]

        roots = await client.fetch_block_children("lesson", max_depth=max_depth)

        assert len(notion.requests) == expected_requests
        depth, nodes = 0, roots
        while nodes and nodes[0].children:
            nodes = nodes[0].children
            depth += 1
        assert depth == min(max_depth, 3)

    @pytest.mark.asyncio
    async def test_child_pages_not_expanded(self, client, notion):
        notion.children["lesson"] = [child_page("sub", "Appendix")]
        notion.children["sub"] = [block("hidden")]

        roots = await client.fetch_block_children("lesson")

        assert isinstance(roots[0], ChildPageNode)
        assert roots[0].children == []
        assert notion.paths() == ["/v1/blocks/lesson/children"]

    @pytest.mark.asyncio
    async def test_nested_failure_fails_whole_call(self, client, notion):
        notion.children["lesson"] = [block("t1", "toggle", has_children=True)]

        with pytest.raises(NotionNotFoundError):
            await client.fetch_block_children("lesson")

    @pytest.mark.asyncio
    async def test_cached_children_not_mutated(self, client, notion):
        """Attaching children does not leak into cached listings."""
        notion.children["lesson"] = [block("t1", "toggle", has_children=True)]
        notion.children["t1"] = [block("p1")]

        await client.fetch_block_children("lesson", max_depth=1)
        roots = await client.fetch_block_children("lesson", max_depth=0)

        assert roots[0].children == []


class TestRetries:
    """Tests for retry and error handling."""

    @pytest.mark.asyncio
    async def test_rate_limited_then_ok(self, client, notion):
        notion.pages["p1"] = page("p1", "One")
        notion.responses.append(
            lambda request: httpx.Response(429, headers={"Retry-After": "0"}, json={"message": "slow down"})
        )

        metadata = await client.fetch_page("p1")

        assert metadata.title == "One"
        assert len(notion.requests) == 2

    @pytest.mark.asyncio
    async def test_server_error_then_ok(self, client, notion):
        notion.pages["p1"] = page("p1", "One")
        notion.responses.append(lambda request: httpx.Response(503))

        assert (await client.fetch_page("p1")).title == "One"

    @pytest.mark.asyncio
    async def test_connection_error_then_ok(self, client, notion):
        notion.pages["p1"] = page("p1", "One")

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        notion.responses.append(refuse)

        assert (await client.fetch_page("p1")).title == "One"

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, client, notion):
        notion.responses.extend(lambda request: httpx.Response(502) for _ in range(3))

        with pytest.raises(NotionAPIError) as exc_info:
            await client.fetch_page("p1")

        assert exc_info.value.status_code == 502
        assert len(notion.requests) == 3

    @pytest.mark.asyncio
    async def test_connection_retries_exhausted(self, client, notion):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        notion.responses.extend([refuse, refuse, refuse])

        with pytest.raises(NotionAPIError) as exc_info:
            await client.fetch_page("p1")

        assert "Failed to connect to Notion API" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, client, notion):
        notion.responses.append(
            lambda request: httpx.Response(
                400, json={"object": "error", "message": "body failed validation"}
            )
        )

        with pytest.raises(NotionAPIError) as exc_info:
            await client.fetch_page("p1")

        assert exc_info.value.message == "body failed validation"
        assert exc_info.value.status_code == 400
        assert len(notion.requests) == 1


class TestFetchCourseStructure:
    """Tests for course structure discovery."""

    @pytest.mark.asyncio
    async def test_splits_modules_handbooks_resources(self, client, notion):
        notion.children["course"] = [
            child_page("m1", "Week 1: Basics"),
            child_page("h1", "Staff Handbook"),
            child_page("r1", "Software Downloads"),
            link_to_page("m2"),
            block("p1"),
        ]
        notion.pages["m2"] = page("m2", "Week 2: Joints", "🔩")
        notion.children["m1"] = [child_page("l1", "Sawing"), link_to_page("l2")]
        notion.pages["l2"] = page("l2", "Planing", "🪵")
        notion.children["m2"] = []
        course = CourseConfig(slug="workshop-skills", title="Workshop", page_id="course")

        structure = await client.fetch_course_structure(course)

        assert [(m.id, m.title, m.icon) for m in structure.modules] == [
            ("m1", "Week 1: Basics", None),
            ("m2", "Week 2: Joints", "🔩"),
        ]
        assert [(lesson.id, lesson.title, lesson.icon) for lesson in structure.modules[0].lessons] == [
            ("l1", "Sawing", None),
            ("l2", "Planing", "🪵"),
        ]
        assert structure.modules[1].lessons == []
        assert [link.id for link in structure.handbooks] == ["h1"]
        assert [link.id for link in structure.resources] == ["r1"]
        assert structure.resources[0].url == "/lessons/r1"

    @pytest.mark.asyncio
    async def test_missing_linked_page_raises(self, client, notion):
        notion.children["course"] = [link_to_page("gone")]
        course = CourseConfig(slug="c", title="C", page_id="course")

        with pytest.raises(NotionNotFoundError):
            await client.fetch_course_structure(course)


class TestTitleRules:
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Staff Handbook", True),
            ("Assessment Guide", True),
            ("Module 3 Assessment", False),
            ("Week 1: Basics", False),
        ],
    )
    def test_is_handbook_title(self, title, expected):
        assert is_handbook_title(title) is expected

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Software Downloads", True),
            ("Style Guide", True),
            ("📂 Files", True),
            ("Week 2 Resources", False),
            ("1. Templates", False),
            ("Sharpening", False),
        ],
    )
    def test_is_resource_title(self, title, expected):
        assert is_resource_title(title) is expected
