"""
Connector tests: URL/auth resolution, error policy, caching and rate-limit handling,
all against a fake transport with a fake clock.
"""
import pytest
import requests

from conftest import FakeTransport, StubRandom, json_response, make_config
from simpro.cache import CacheLayer
from simpro.config import CacheSettings, RateLimitSettings
from simpro.connector import SimproConnector
from simpro.errors import HttpError, RateLimitExceeded
from simpro.models import RequestDescriptor, ResponseEnvelope
from simpro.rate_limit import RateLimiter
from simpro.stores import MemoryStore

CUSTOMERS = RequestDescriptor("GET", "/companies/0/customers/")


def _connector(transport, clock, *, rng=None, **cfg_overrides):
    return SimproConnector(
        make_config(**cfg_overrides),
        transport=transport,
        clock=clock,
        sleep=clock.sleep,
        rng=rng or StubRandom(0.5),
    )


def _limited(**kwargs):
    kwargs.setdefault("enabled", True)
    kwargs.setdefault("per_second", 10)
    return RateLimitSettings(**kwargs)


class TestResolution:
    def test_resolve_base_url(self, transport, clock):
        conn = _connector(transport, clock, base_url="https://acme.simprosuite.com/")
        assert conn.resolve_base_url() == "https://acme.simprosuite.com/api/v1.0"

    def test_resolve_url(self, transport, clock):
        conn = _connector(transport, clock)
        assert conn.resolve_url(CUSTOMERS) == "https://acme.simprosuite.com/api/v1.0/companies/0/customers/"

    def test_every_request_carries_bearer_token(self, transport, clock):
        transport.queue(json_response([]), json_response({}))
        conn = _connector(transport, clock)

        conn.send(CUSTOMERS)
        conn.send(RequestDescriptor("PATCH", "/companies/0/sites/4", body={"Name": "HQ"}))

        for call in transport.calls:
            assert call["headers"]["Authorization"] == "Bearer secret-key"
            assert call["headers"]["Accept"] == "application/json"
        assert transport.calls[1]["json"] == {"Name": "HQ"}

    def test_query_is_forwarded(self, transport, clock):
        transport.queue(json_response({"ID": 12}))
        conn = _connector(transport, clock)
        conn.send(RequestDescriptor("GET", "/companies/0/quotes/12", query={"display": "all"}))
        assert transport.calls[0]["params"] == {"display": "all"}


class TestErrors:
    @pytest.mark.parametrize("status", [400, 401, 404, 422, 500, 503])
    def test_non_2xx_raises_http_error(self, transport, clock, status):
        transport.queue(json_response({"errors": ["nope"]}, status=status))
        conn = _connector(transport, clock)

        with pytest.raises(HttpError) as exc_info:
            conn.send(CUSTOMERS)

        assert exc_info.value.status == status
        assert exc_info.value.request == CUSTOMERS
        assert not isinstance(exc_info.value, RateLimitExceeded)
        assert len(transport.calls) == 1

    def test_2xx_returns_envelope(self, transport, clock):
        transport.queue(json_response({"ID": 1}, status=201))
        resp = _connector(transport, clock).send(RequestDescriptor("POST", "/companies/0/customers/", body={"x": 1}))
        assert resp.status == 201
        assert resp.json() == {"ID": 1}
        assert resp.cached is False

    def test_transport_errors_pass_through_unmodified(self, transport, clock):
        boom = requests.ConnectionError("connection refused")
        transport.queue(boom)
        conn = _connector(transport, clock)

        with pytest.raises(requests.ConnectionError) as exc_info:
            conn.send(CUSTOMERS)
        assert exc_info.value is boom

    def test_429_with_rate_limiting_disabled_surfaces_immediately(self, transport, clock):
        transport.queue(json_response({}, status=429))
        conn = _connector(transport, clock)

        with pytest.raises(RateLimitExceeded):
            conn.send(CUSTOMERS)
        assert clock.sleeps == []


class TestRateLimiting:
    def test_429_backs_off_then_retries(self, transport, clock):
        transport.queue(json_response({}, status=429), json_response([{"ID": 1}]))
        conn = _connector(transport, clock, rate_limit=_limited())

        resp = conn.send(CUSTOMERS)

        assert resp.json() == [{"ID": 1}]
        assert len(transport.calls) == 2
        assert clock.sleeps == [90.0]

    def test_random_cooldown_bounds(self, transport, clock):
        import random

        transport.queue(json_response({}, status=429), json_response([]))
        conn = _connector(transport, clock, rng=random.Random(99), rate_limit=_limited())
        conn.send(CUSTOMERS)

        assert len(clock.sleeps) == 1
        assert 60.0 <= clock.sleeps[0] < 120.0

    def test_repeated_429_escalates(self, transport, clock):
        transport.queue(
            json_response({}, status=429),
            json_response({}, status=429),
            json_response({}, status=429),
            json_response([]),
        )
        conn = _connector(transport, clock, rng=StubRandom(0.5, 0.25, 0.1), rate_limit=_limited())

        conn.send(CUSTOMERS)

        assert clock.sleeps == pytest.approx([90.0, 105.0, 111.0])

    def test_retry_ceiling_raises_rate_limit_exceeded(self, transport, clock):
        transport.queue(*[json_response({}, status=429) for _ in range(3)])
        conn = _connector(transport, clock, rate_limit=_limited(max_retries=2))

        with pytest.raises(RateLimitExceeded) as exc_info:
            conn.send(CUSTOMERS)

        assert exc_info.value.retries == 2
        assert exc_info.value.status == 429
        assert len(clock.sleeps) == 2
        assert len(transport.calls) == 3

    def test_pre_emptive_throttle_delays_instead_of_failing(self, transport, clock):
        transport.queue(*[json_response([]) for _ in range(3)])
        conn = _connector(transport, clock, rate_limit=_limited(per_second=2))

        for _ in range(3):
            conn.send(CUSTOMERS, use_cache=False)

        assert len(transport.calls) == 3
        assert clock.sleeps == [pytest.approx(1.0)]

    def test_injected_limiter_is_used(self, transport, clock):
        limiter = RateLimiter(per_second=1, clock=clock, sleep=clock.sleep)
        transport.queue(json_response([]), json_response([]))
        conn = SimproConnector(make_config(), transport=transport, rate_limiter=limiter, clock=clock, sleep=clock.sleep)

        conn.send(CUSTOMERS)
        conn.send(CUSTOMERS)

        assert clock.sleeps == [pytest.approx(1.0)]


class TestCaching:
    def _cached(self, transport, clock, **kwargs):
        return _connector(transport, clock, cache=CacheSettings(enabled=True, expire=60), **kwargs)

    def test_cache_hit_skips_transport_and_limiter(self, transport, clock):
        transport.queue(json_response([{"ID": 1}]))
        conn = self._cached(transport, clock, rate_limit=_limited())

        first = conn.send(CUSTOMERS)
        hits_after_first = conn.rate_limiter.window().hits
        second = conn.send(CUSTOMERS)

        assert len(transport.calls) == 1
        assert first.cached is False
        assert second.cached is True
        assert second.json() == [{"ID": 1}]
        assert conn.rate_limiter.window().hits == hits_after_first

    def test_entry_expires(self, transport, clock):
        transport.queue(json_response([1]), json_response([2]))
        conn = self._cached(transport, clock)

        conn.send(CUSTOMERS)
        clock.advance(61)
        assert conn.send(CUSTOMERS).json() == [2]
        assert len(transport.calls) == 2

    def test_different_query_is_a_different_entry(self, transport, clock):
        transport.queue(json_response([1]), json_response([2]))
        conn = self._cached(transport, clock)

        conn.send(CUSTOMERS.with_query(page=1))
        assert conn.send(CUSTOMERS.with_query(page=2)).json() == [2]

    def test_expire_zero_bypasses_cache(self, transport, clock):
        transport.queue(json_response([1]), json_response([2]))
        conn = _connector(transport, clock, cache=CacheSettings(enabled=True, expire=0))

        conn.send(CUSTOMERS)
        conn.send(CUSTOMERS)
        assert len(transport.calls) == 2

    def test_writes_are_not_cached(self, transport, clock):
        transport.queue(json_response({}), json_response({}))
        conn = self._cached(transport, clock)
        req = RequestDescriptor("POST", "/companies/0/customers/", body={"x": 1})

        conn.send(req)
        conn.send(req)
        assert len(transport.calls) == 2

    def test_errors_are_not_cached(self, transport, clock):
        transport.queue(json_response({}, status=500), json_response([1]))
        conn = self._cached(transport, clock)

        with pytest.raises(HttpError):
            conn.send(CUSTOMERS)
        assert conn.send(CUSTOMERS).json() == [1]

    def test_use_cache_false(self, transport, clock):
        transport.queue(json_response([1]), json_response([2]))
        conn = self._cached(transport, clock)

        conn.send(CUSTOMERS)
        assert conn.send(CUSTOMERS, use_cache=False).json() == [2]

    def test_invalidate_cache_refetches_and_restores(self, transport, clock):
        transport.queue(json_response([1]), json_response([2]))
        conn = self._cached(transport, clock)

        conn.send(CUSTOMERS)
        assert conn.send(CUSTOMERS, invalidate_cache=True).json() == [2]
        assert conn.send(CUSTOMERS).json() == [2]
        assert len(transport.calls) == 2

    def test_memory_cache_does_not_grow_with_distinct_requests(self, transport, clock):
        conn = self._cached(transport, clock)
        for i in range(200):
            transport.queue(json_response({"ID": i}))
            conn.send(RequestDescriptor("GET", f"/companies/0/customers/{i}"))
            clock.advance(120)

        assert len(conn.cache.store) <= 1

    def test_binary_body_survives_a_json_store(self, transport, clock, tmp_path):
        raw = b"\x89PNG\r\n\x1a\n\xff\xfe"
        transport.queue(ResponseEnvelope(status=200, headers={"Content-Type": "image/png"}, body=raw))
        conn = _connector(
            transport,
            clock,
            store_path=str(tmp_path),
            cache=CacheSettings(enabled=True, expire=60, driver="file"),
        )

        conn.send(CUSTOMERS)
        hit = conn.send(CUSTOMERS)

        assert hit.cached is True
        assert hit.body == raw
        assert hit.header("content-type") == "image/png"

    def test_injected_cache_layer(self, transport, clock):
        layer = CacheLayer(expiry_seconds=30, store=MemoryStore(clock=clock), clock=clock)
        transport.queue(json_response([1]))
        conn = SimproConnector(make_config(), transport=transport, cache=layer, clock=clock, sleep=clock.sleep)

        conn.send(CUSTOMERS)
        assert layer.get(conn.fingerprint(CUSTOMERS)) is not None


class TestConvenience:
    def test_verbs(self, transport, clock):
        transport.queue(json_response({"ID": 1}), json_response({"ID": 2}), json_response(None, status=204))
        conn = _connector(transport, clock)

        assert conn.get("/companies/0/customers/1", {"columns": "ID"}) == {"ID": 1}
        assert conn.patch("/companies/0/customers/1", {"Name": "x"}) == {"ID": 2}
        assert conn.delete("/companies/0/customers/1") is None

        assert [c["method"] for c in transport.calls] == ["GET", "PATCH", "DELETE"]
        assert transport.calls[0]["params"] == {"columns": "ID"}

    def test_context_manager_closes_transport(self, clock):
        transport = FakeTransport()
        with _connector(transport, clock):
            pass
        assert transport.closed is True


def test_request_events(transport, clock, events):
    transport.queue(json_response([]), json_response({}, status=404))
    conn = _connector(transport, clock)

    conn.send(CUSTOMERS)
    with pytest.raises(HttpError):
        conn.send(CUSTOMERS)

    messages = [e.message for e in events]
    assert messages == ["http.request.start", "http.request.ok", "http.request.start", "http.request.error"]
    assert events[0].connector == "simpro"
    assert events[3].level == "error"
    assert events[3].fields["status"] == 404
