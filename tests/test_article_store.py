import asyncio

import httpx
import pytest
from structlog.testing import capture_logs

from scijournal.models import ArticleStatus
from scijournal.services.articles import (
    ArticleQuery,
    ArticleStore,
    CachePolicy,
    PublishDetails,
    history_extends,
    next_statuses,
)

from conftest import article_payload, envelope


def _page(*articles, total=None, limit=10):
    total = len(articles) if total is None else total
    return envelope(
        list(articles),
        pagination={"page": 1, "limit": limit, "total": total, "pages": -(-total // limit)},
    )


@pytest.mark.asyncio
async def test_list_replaces_collection_and_pagination(article_store, backend) -> None:
    backend.add("GET", "/articles", _page(article_payload("a1", "First"), article_payload("a2", "Second"), total=12))

    result = await article_store.list(ArticleQuery(status=ArticleStatus.SUBMITTED, search="iot"))

    assert result.ok
    assert [item.id for item in article_store.articles] == ["a1", "a2"]
    assert article_store.pagination.total == 12
    params = backend.requests[0].url.params
    assert params["status"] == "submitted"
    assert params["search"] == "iot"
    assert article_store.loading["articles"] is False
    assert article_store.errors["articles"] is None


@pytest.mark.asyncio
async def test_create_prepends_and_adjusts_pagination(article_store, backend, notifier) -> None:
    backend.add("GET", "/articles", _page(article_payload("a1"), total=10))
    backend.add("POST", "/articles", envelope(article_payload("new", "IoT Sensor Networks")))
    await article_store.list()

    result = await article_store.create({"title": "IoT Sensor Networks", "status": "submitted"})

    assert result.ok
    assert result.value == "new"
    assert article_store.articles[0].id == "new"
    assert article_store.articles[0].status is ArticleStatus.SUBMITTED
    assert article_store.pagination.total == 11
    assert article_store.pagination.pages == 2
    assert notifier.of_kind("success") == ["Article created successfully"]


@pytest.mark.asyncio
async def test_failed_create_leaves_collection_untouched(article_store, backend, notifier) -> None:
    backend.add("GET", "/articles", _page(article_payload("a1")))
    backend.add("POST", "/articles", {"success": False, "message": "boom"}, status=500)
    await article_store.list()

    result = await article_store.create({"title": "x"})

    assert not result.ok
    assert result.message == "Failed to create article"
    assert [item.id for item in article_store.articles] == ["a1"]
    assert article_store.errors["createArticle"] == "Failed to create article"
    assert article_store.loading["createArticle"] is False
    assert notifier.of_kind("error") == ["Failed to create article"]


@pytest.mark.asyncio
async def test_update_replaces_in_place(article_store, backend) -> None:
    backend.add("GET", "/articles", _page(article_payload("a1", "Old"), article_payload("a2")))
    backend.add("PUT", "/articles/a1/update", envelope(article_payload("a1", "New")))
    await article_store.list()

    result = await article_store.update("a1", {"title": "New"})

    assert result.ok
    assert [item.title for item in article_store.articles] == ["New", "Untitled"]


@pytest.mark.asyncio
async def test_delete_removes_and_decrements_total(article_store, backend) -> None:
    backend.add("GET", "/articles", _page(article_payload("a1"), article_payload("a2")))
    backend.add("DELETE", "/articles/a1", envelope(None))
    await article_store.list()

    result = await article_store.delete("a1")

    assert result.ok
    assert [item.id for item in article_store.articles] == ["a2"]
    assert article_store.pagination.total == 1


@pytest.mark.asyncio
async def test_change_status_appends_history(article_store, backend) -> None:
    first = {"status": "submitted", "reason": ""}
    backend.add("GET", "/articles", _page(article_payload("a1", statusHistory=[first])))
    backend.add(
        "PATCH",
        "/articles/a1/status",
        envelope(
            article_payload(
                "a1",
                status="revisions_required",
                statusHistory=[first, {"status": "revisions_required", "reason": "Fix figures"}],
            )
        ),
    )
    await article_store.list()
    before = article_store.articles[0]

    result = await article_store.change_status("a1", ArticleStatus.REVISION_REQUESTED, "Fix figures")

    assert result.ok
    after = article_store.articles[0]
    assert after.status is ArticleStatus.REVISION_REQUESTED
    assert len(after.status_history) == len(before.status_history) + 1
    assert history_extends(before, after)
    assert backend.body(backend.calls("PATCH", "/articles/a1/status")[0]) == {
        "status": "revision_requested",
        "reason": "Fix figures",
    }


@pytest.mark.asyncio
async def test_publish_sends_only_given_details(article_store, backend) -> None:
    backend.add("PUT", "/articles/a1/publish", envelope(article_payload("a1", status="published", doi="10.1/x")))

    result = await article_store.publish("a1", PublishDetails(doi="10.1/x", page_start=3))

    assert result.value.status is ArticleStatus.PUBLISHED
    assert backend.body(backend.requests[0]) == {"doi": "10.1/x", "pageStart": 3}


@pytest.mark.asyncio
async def test_refetch_policy_relists_with_last_query(api, notifier, backend) -> None:
    store = ArticleStore(api, notifier, cache_policy=CachePolicy.REFETCH)
    backend.add("GET", "/articles", _page(article_payload("a1")))
    backend.add("PUT", "/articles/a1/assign-editor", envelope(article_payload("a1", editorId="e1")))
    await store.list(ArticleQuery(page=3, limit=5))

    await store.assign_editor("a1", "e1")

    listings = backend.calls("GET", "/articles")
    assert len(listings) == 2
    assert listings[-1].url.params["page"] == "3"
    assert listings[-1].url.params["limit"] == "5"


@pytest.mark.asyncio
async def test_reconcile_policy_does_not_refetch(article_store, backend) -> None:
    backend.add("GET", "/articles", _page(article_payload("a1")))
    backend.add("PUT", "/articles/a1/assign-editor", envelope(article_payload("a1", editorId="e1")))
    await article_store.list()

    await article_store.assign_editor("a1", "e1")

    assert len(backend.calls("GET", "/articles")) == 1
    assert article_store.articles[0].editor_id == "e1"


@pytest.mark.asyncio
@pytest.mark.parametrize("slow", ["A", "B"])
async def test_get_by_id_keeps_latest_request(article_store, backend, slow) -> None:
    gates = {"A": asyncio.Event(), "B": asyncio.Event()}

    def route(article_id):
        async def handler(request):
            if article_id == slow:
                await gates[article_id].wait()
            return envelope(article_payload(article_id, f"Article {article_id}"))

        return handler

    backend.add("GET", "/articles/A", handler=route("A"))
    backend.add("GET", "/articles/B", handler=route("B"))

    first = asyncio.create_task(article_store.get_by_id("A"))
    await asyncio.sleep(0)
    second = asyncio.create_task(article_store.get_by_id("B"))
    await asyncio.sleep(0.01)
    gates[slow].set()
    result_a, result_b = await asyncio.gather(first, second)

    assert result_a.value.id == "A"
    assert result_b.value.id == "B"
    assert article_store.article.id == "B"


@pytest.mark.asyncio
async def test_superseded_failure_leaves_latest_article_state_alone(article_store, backend, notifier) -> None:
    gate = asyncio.Event()

    async def slow_failure(request):
        await gate.wait()
        return httpx.Response(500, json={"success": False, "message": "boom"})

    backend.add("GET", "/articles/A", handler=slow_failure)
    backend.add("GET", "/articles/B", envelope(article_payload("B", "Article B")))

    first = asyncio.create_task(article_store.get_by_id("A"))
    await asyncio.sleep(0)
    second = asyncio.create_task(article_store.get_by_id("B"))
    await asyncio.sleep(0.01)
    assert article_store.loading["article"] is False
    gate.set()
    result_a, result_b = await asyncio.gather(first, second)

    assert not result_a.ok
    assert result_b.ok
    assert article_store.article.id == "B"
    assert article_store.errors["article"] is None
    assert article_store.loading["article"] is False
    assert notifier.of_kind("error") == []


@pytest.mark.asyncio
async def test_latest_request_owns_the_loading_flag(article_store, backend) -> None:
    gate = asyncio.Event()

    async def slow_article(request):
        await gate.wait()
        return envelope(article_payload("B", "Article B"))

    backend.add("GET", "/articles/A", envelope(article_payload("A", "Article A")))
    backend.add("GET", "/articles/B", handler=slow_article)

    first = asyncio.create_task(article_store.get_by_id("A"))
    await asyncio.sleep(0)
    second = asyncio.create_task(article_store.get_by_id("B"))
    await first

    assert article_store.loading["article"] is True
    gate.set()
    await second
    assert article_store.loading["article"] is False
    assert article_store.article.id == "B"


@pytest.mark.asyncio
async def test_failure_is_logged_under_the_store_namespace(article_store, backend) -> None:
    backend.add("POST", "/articles", {"success": False, "message": "invalid"}, status=400)

    with capture_logs() as logs:
        result = await article_store.create({"title": "T"})

    assert not result.ok
    failures = [entry for entry in logs if entry["event"] == "article.operation_failed"]
    assert failures[0]["operation"] == "createArticle"
    assert failures[0]["log_level"] == "error"


def test_next_statuses_follow_the_editorial_workflow() -> None:
    assert next_statuses(ArticleStatus.UNDER_REVIEW) == (
        ArticleStatus.ACCEPTED,
        ArticleStatus.REJECTED,
        ArticleStatus.REVISION_REQUESTED,
    )
    assert next_statuses(ArticleStatus.PUBLISHED) == ()
    assert next_statuses("revisions_required") == (ArticleStatus.SUBMITTED,)
