import asyncio

import pytest

from contactsweep.core.services.fetch_service import ContactFetchService
from contactsweep.domain.errors import (
    HttpStatusError,
    NoWorkingEndpointError,
    NotAuthenticatedError,
    RateLimitedError,
    RequestTimeoutError,
    TransportError,
)
from contactsweep.domain.models.contact import EndpointConfig
from contactsweep.domain.models.http import TransportResponse
from contactsweep.infrastructure.auth.cookie_credentials import CookieCredentialProvider

CATALOG = (
    EndpointConfig("first", "https://api.test/first", (("count", "40"),)),
    EndpointConfig("second", "https://api.test/second", (("count", "40"),)),
    EndpointConfig("third", "https://api.test/third", (("count", "40"),)),
)


def _service(transport, credentials, discovery_state, **kwargs):
    return ContactFetchService(
        transport=transport,
        credentials=credentials,
        discovery_state=discovery_state,
        catalog=CATALOG,
        rate_limit_cooldown=0,
        timeout_cooldown=0,
        page_delay=(0, 0),
        **kwargs,
    )


def _endpoint(request):
    return request.url.split("?")[0].rsplit("/", 1)[-1]


def test_three_endpoint_scenario(fake_transport, page_factory, credentials, discovery_state):
    """404, then a valid-but-empty page, then a small populated page."""
    def handler(request):
        name = _endpoint(request)
        if name == "first":
            return HttpStatusError(404, "not found", request.url)
        if name == "second":
            return {"data": {"paging": {"count": 40}}, "included": []}
        return page_factory(0, 3, total=3)

    transport = fake_transport(handler)
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all())

    assert [r.name for r in records] == ["First0 Last0", "First1 Last1", "First2 Last2"]
    assert discovery_state.endpoint.name == "third"
    assert [(_endpoint(c), c.start) for c in transport.calls] == [("first", 0), ("second", 0), ("third", 0)]


def test_discovery_is_idempotent_and_warm(fake_transport, page_factory, credentials, discovery_state):
    def handler(request):
        if _endpoint(request) == "first":
            return TransportError("network down")
        return page_factory(0, 2)

    transport = fake_transport(handler)
    service = _service(transport, credentials, discovery_state)

    cold = asyncio.run(service.discover())
    calls_after_cold = len(transport.calls)
    warm = asyncio.run(service.discover())

    assert cold.records == warm.records
    assert discovery_state.endpoint.name == "second"
    assert calls_after_cold == 2
    assert [_endpoint(c) for c in transport.calls[calls_after_cold:]] == ["second"]


def test_warm_endpoint_failure_rescans_without_it(fake_transport, page_factory, credentials, discovery_state):
    discovery_state.endpoint = CATALOG[0]

    def handler(request):
        if _endpoint(request) == "first":
            return HttpStatusError(410, "gone", request.url)
        return page_factory(0, 1)

    transport = fake_transport(handler)
    asyncio.run(_service(transport, credentials, discovery_state).discover())

    assert [_endpoint(c) for c in transport.calls] == ["first", "second"]
    assert discovery_state.endpoint.name == "second"


def test_rate_limit_aborts_discovery(fake_transport, credentials, discovery_state):
    transport = fake_transport(lambda request: RateLimitedError())

    with pytest.raises(RateLimitedError):
        asyncio.run(_service(transport, credentials, discovery_state).discover())
    assert len(transport.calls) == 1
    assert discovery_state.endpoint is None


def test_no_working_endpoint(fake_transport, credentials, discovery_state):
    transport = fake_transport(lambda request: TransportResponse(200, "not json"))

    with pytest.raises(NoWorkingEndpointError) as excinfo:
        asyncio.run(_service(transport, credentials, discovery_state).discover())
    assert excinfo.value.tried == 3


def test_missing_credentials_fail_before_any_request(fake_transport, discovery_state):
    transport = fake_transport(lambda request: {})
    service = _service(transport, CookieCredentialProvider("li_at=x"), discovery_state)

    with pytest.raises(NotAuthenticatedError):
        asyncio.run(service.fetch_all())
    assert transport.calls == []


def test_total_estimate_corrects_from_unknown(fake_transport, page_factory, credentials, discovery_state):
    def handler(request):
        if request.start == 0:
            return page_factory(0, 40)
        return page_factory(40, 17, total=57)

    transport = fake_transport(handler)
    progress = []
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all(progress.append))

    assert len(records) == 57
    assert progress == [{"fetched": 40, "total": 0}, {"fetched": 57, "total": 57}]
    assert [c.start for c in transport.calls] == [0, 40]


def test_reported_total_never_shrinks(fake_transport, page_factory, credentials, discovery_state):
    def handler(request):
        totals = {0: 120, 40: 50, 80: 120}
        return page_factory(request.start, 40, total=totals[request.start])

    transport = fake_transport(handler)
    progress = []
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all(progress.append))

    assert len(records) == 120
    assert [p["total"] for p in progress] == [120, 120, 120]


@pytest.mark.parametrize("transient", [RateLimitedError(), RequestTimeoutError("u", 30.0)])
def test_transient_errors_retry_same_offset(fake_transport, page_factory, credentials, discovery_state, transient):
    failures = {"left": 2}

    def handler(request):
        if request.start == 40 and failures["left"]:
            failures["left"] -= 1
            return transient
        return page_factory(request.start, 40, total=80)

    transport = fake_transport(handler)
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all())

    assert len(records) == 80
    assert [c.start for c in transport.calls] == [0, 40, 40, 40]


def test_other_error_stops_with_accumulated_records(fake_transport, page_factory, credentials, discovery_state):
    def handler(request):
        if request.start == 80:
            return HttpStatusError(500, "oops", request.url)
        return page_factory(request.start, 40, total=200)

    transport = fake_transport(handler)
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all())

    assert len(records) == 80
    assert [c.start for c in transport.calls] == [0, 40, 80]


def test_two_empty_pages_stop_pagination(fake_transport, page_factory, credentials, discovery_state):
    def handler(request):
        if request.start == 0:
            return page_factory(0, 40)
        return {"included": []}

    transport = fake_transport(handler)
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all())

    assert len(records) == 40
    assert [c.start for c in transport.calls] == [0, 40, 80]


def test_empty_first_page_with_total_stops_immediately(fake_transport, credentials, discovery_state):
    transport = fake_transport(lambda request: {"data": {"paging": {"total": 300}}, "included": []})
    progress = []
    records = asyncio.run(_service(transport, credentials, discovery_state).fetch_all(progress.append))

    assert records == []
    assert progress == [{"fetched": 0, "total": 300}]
    assert len(transport.calls) == 1


def test_list_requests_carry_session_headers(fake_transport, page_factory, credentials, discovery_state):
    transport = fake_transport(lambda request: page_factory(0, 1, total=1))
    asyncio.run(_service(transport, credentials, discovery_state, list_timeout=12.5).fetch_all())

    request = transport.calls[0]
    assert request.method == "GET"
    assert request.headers["csrf-token"] == "ajax:1234567890"
    assert request.timeout == 12.5
