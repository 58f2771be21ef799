import asyncio
import base64
import random
from unittest.mock import AsyncMock

import pytest

from fakes import FakeElement, FakePage
from hostbrowser.batch import Failure, Success
from hostbrowser.behavior import HumanBehavior
from hostbrowser.config.schema import Config
from hostbrowser.errors import ExecutionError, MissingCredentialError, ValidationError
from hostbrowser.program.interpreter import ProgramInterpreter
from hostbrowser.service import BrowserService


def _config(**overrides) -> Config:
    config = Config(**overrides)
    config.remote.token = "test-token-abcdef"
    return config


def _service(client, **overrides) -> BrowserService:
    return BrowserService(
        _config(**overrides),
        client=client,
        behavior=HumanBehavior(random.Random(0)),
        sleep=AsyncMock(),
    )


class InterpretingClient:
    """Remote client double that runs submitted programs against a fake page."""

    def __init__(self, page: FakePage):
        self.page = page
        self.programs = []

    async def submit(self, program, timeout_ms=None):
        self.programs.append((program, timeout_ms))
        return await ProgramInterpreter(self.page, honor_delays=False).run(program)

    async def call(self, call):
        raise AssertionError("not expected")


def test_missing_credential_at_construction(monkeypatch) -> None:
    monkeypatch.delenv("BROWSERLESS_API_KEY", raising=False)
    with pytest.raises(MissingCredentialError):
        BrowserService(Config())


@pytest.mark.asyncio
async def test_search_returns_max_results_normalized() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(
        return_value=[
            {"title": "  One ", "link": "https://one.example/a"},
            {"title": "Two", "link": "https://two.example/b"},
            {"title": "Three  ", "link": None},
        ]
    )
    service = _service(client)

    entries = await service.search("best free ai tools", max_results=3)

    assert [entry.to_dict() for entry in entries] == [
        {"title": "One", "link": "https://one.example/a", "domain": "one.example"},
        {"title": "Two", "link": "https://two.example/b", "domain": "two.example"},
        {"title": "Three", "link": None, "domain": None},
    ]
    program, timeout_ms = client.submit.await_args.args
    assert program.steps[-1] == {"type": "collect", "selector": "h3", "limit": 3}
    assert timeout_ms == 60000


@pytest.mark.asyncio
async def test_search_end_to_end_limits_five_remote_entries_to_three() -> None:
    page = FakePage(
        {"h3": [FakeElement(f"  Result {i} ", f"https://site{i}.example/p") for i in range(5)]}
    )
    service = _service(InterpretingClient(page))

    entries = await service.search("best free ai tools", max_results=3)

    assert [entry.title for entry in entries] == ["Result 0", "Result 1", "Result 2"]
    assert [entry.domain for entry in entries] == ["site0.example", "site1.example", "site2.example"]


@pytest.mark.asyncio
async def test_search_applies_exclude_filter() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(
        return_value=[
            {"title": "Keep", "link": "https://keep.example"},
            {"title": "Drop", "link": "https://drop.example"},
        ]
    )
    service = _service(client)

    entries = await service.search("q", filters={"excludeDomains": ["drop.example"]})

    assert [entry.title for entry in entries] == ["Keep"]


@pytest.mark.asyncio
async def test_search_rejects_non_list_payload() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value={"error": "captcha"})
    service = _service(client)

    with pytest.raises(ExecutionError) as exc_info:
        await service.search("q")

    assert exc_info.value.cause == ExecutionError.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_validation_happens_before_remote_call() -> None:
    client = AsyncMock()
    service = _service(client)

    with pytest.raises(ValidationError, match="query"):
        await service.search("   ")
    with pytest.raises(ValidationError, match="url"):
        await service.scrape("", {"a": ".a"})
    with pytest.raises(ValidationError, match="Private/local host blocked"):
        await service.scrape("http://127.0.0.1/admin", {"a": ".a"})
    with pytest.raises(ValidationError, match="http/https"):
        await service.screenshot("file:///etc/passwd")

    client.submit.assert_not_awaited()
    client.call.assert_not_awaited()


@pytest.mark.asyncio
async def test_scrape_scenario_headline_and_tags() -> None:
    page = FakePage(
        {
            ".headline": [FakeElement("Breaking")],
            ".tag": [FakeElement("t1"), FakeElement("t2"), FakeElement("t3")],
        }
    )
    client = InterpretingClient(page)
    service = _service(client)

    data = await service.scrape(
        "https://example.com",
        {"title": ".headline", "tags": {"selector": ".tag", "multiple": True}},
    )

    assert data == {"title": "Breaking", "tags": ["t1", "t2", "t3"]}
    assert client.programs[0][1] == 30000


@pytest.mark.asyncio
async def test_scrape_keeps_every_key_when_remote_omits_some() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value={"title": "x"})
    service = _service(client)

    data = await service.scrape("https://example.com", {"title": "h1", "price": ".price"})

    assert data == {"title": "x", "price": None}


@pytest.mark.asyncio
async def test_screenshot_returns_bytes() -> None:
    client = AsyncMock()
    client.call = AsyncMock(return_value=b"\x89PNG")
    service = _service(client)

    image = await service.screenshot("https://example.com", full_page=True)

    assert image == b"\x89PNG"
    call = client.call.await_args.args[0]
    assert call.params["options"]["fullPage"] is True


@pytest.mark.asyncio
async def test_screenshot_empty_body_is_execution_error() -> None:
    client = AsyncMock()
    client.call = AsyncMock(return_value=b"")
    service = _service(client)

    with pytest.raises(ExecutionError):
        await service.screenshot("https://example.com")


@pytest.mark.asyncio
async def test_run_batch_isolates_failure() -> None:
    async def submit(program, timeout_ms=None):
        query = program.steps[2]["text"]
        if query == "b":
            raise ExecutionError(ExecutionError.HTTP_STATUS, "remote function call failed with HTTP 500")
        return [{"title": query, "link": f"https://{query}.example"}]

    client = AsyncMock()
    client.submit = AsyncMock(side_effect=submit)
    sleep = AsyncMock()
    service = BrowserService(
        _config(),
        client=client,
        behavior=HumanBehavior(random.Random(0)),
        sleep=sleep,
    )

    report = await service.run_batch(["a", "b", "c"])

    assert [type(item.outcome) for item in report.items] == [Success, Failure, Success]
    assert report.to_dict()["succeeded"] == 2
    assert report.to_dict()["failed"] == 1
    assert report.items[0].outcome.result[0].domain == "a.example"
    assert sleep.await_count == 2
    sleep.assert_awaited_with(2.0)


@pytest.mark.asyncio
async def test_run_batch_input_validation() -> None:
    service = _service(AsyncMock())

    with pytest.raises(ValidationError):
        await service.run_batch([])
    with pytest.raises(ValidationError):
        await service.run_batch("single string")
    service.client.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_batch_blank_query_fails_only_its_item() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value=[{"title": "Hit", "link": "https://hit.example"}])
    service = _service(client)

    report = await service.run_batch(["a", " ", "c"])

    assert [type(item.outcome) for item in report.items] == [Success, Failure, Success]
    assert report.items[1].outcome.cause == "ValidationError"
    assert client.submit.await_count == 2
    payload = report.to_dict()
    assert payload["failed"] == 1
    assert payload["results"][1]["query"] == " "
    assert payload["results"][1]["success"] is False


@pytest.mark.asyncio
async def test_explicit_zero_max_results_is_rejected() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value=[])
    service = _service(client)

    with pytest.raises(ValidationError):
        await service.search("q", max_results=0)
    report = await service.run_batch(["a", "b"], max_results=0)

    assert report.failed == 2
    assert {item.outcome.cause for item in report.items} == {"ValidationError"}
    client.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_omitted_max_results_uses_configured_default() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value=[])
    service = _service(client, search={"defaultMaxResults": 7})

    await service.search("q")

    program, _ = client.submit.await_args.args
    assert program.steps[-1]["limit"] == 7


@pytest.mark.asyncio
async def test_seeded_service_builds_identical_programs_per_call() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value=[])
    service = BrowserService(_config(seed=7), client=client, sleep=AsyncMock())

    await asyncio.gather(service.search("same query"), service.search("same query"))
    await service.search("same query")

    programs = [call.args[0].to_json() for call in client.submit.await_args_list]
    assert len(programs) == 3
    assert programs[0] == programs[1] == programs[2]


@pytest.mark.asyncio
async def test_run_batch_respects_max_items() -> None:
    service = _service(AsyncMock(), batch={"maxItems": 2})

    with pytest.raises(ValidationError, match="maxItems=2"):
        await service.run_batch(["a", "b", "c"])


@pytest.mark.asyncio
async def test_dispatch_screenshot_is_base64() -> None:
    client = AsyncMock()
    client.call = AsyncMock(return_value=b"img-bytes")
    service = _service(client)

    payload = await service.dispatch("screenshot", {"url": "https://example.com"})

    assert payload["success"] is True
    assert payload["action"] == "screenshot"
    assert base64.b64decode(payload["result"]) == b"img-bytes"


@pytest.mark.asyncio
async def test_dispatch_search_and_unknown_action() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value=[{"title": "A", "link": "https://a.example"}])
    service = _service(client)

    payload = await service.dispatch("google_search", {"query": "x", "options": {"maxResults": 2}})
    assert payload["result"] == [{"title": "A", "link": "https://a.example", "domain": "a.example"}]

    with pytest.raises(ValidationError, match="invalid action"):
        await service.dispatch("delete_everything", {})


@pytest.mark.asyncio
async def test_search_response_envelope() -> None:
    client = AsyncMock()
    client.submit = AsyncMock(return_value=[{"title": "A", "link": None}])
    service = _service(client)

    payload = (await service.search_response("q")).to_dict()

    assert payload["success"] is True
    assert payload["query"] == "q"
    assert payload["resultsCount"] == 1
    assert payload["results"] == [{"title": "A", "link": None, "domain": None}]
