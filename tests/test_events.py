"""
Event bus tests: emitter scoping, connector stamping and request event fields.
"""
import pytest

from simpro.events import records, request_event, warn
from simpro.models import RequestDescriptor
from simpro.runtime.events import emit, get_emitter, set_emitter, use_emitter


class TestEmitterScope:
    def test_no_emitter_is_a_no_op(self):
        with use_emitter(None):
            emit("message", "nobody listening")

    def test_use_emitter_restores_previous(self):
        outer = []
        inner = []
        with use_emitter(outer.append):
            with use_emitter(inner.append):
                emit("message", "inner")
            emit("message", "outer")
            assert get_emitter() == outer.append

        assert [e.message for e in inner] == ["inner"]
        assert [e.message for e in outer] == ["outer"]

    def test_restored_after_error(self):
        set_emitter(None)
        with pytest.raises(RuntimeError):
            with use_emitter(lambda evt: None):
                raise RuntimeError("boom")
        assert get_emitter() is None

    def test_broken_emitter_does_not_propagate(self):
        def explode(evt):
            raise OSError("terminal gone")

        with use_emitter(explode):
            emit("message", "still fine")

    def test_unknown_level(self, events):
        with pytest.raises(ValueError):
            emit("message", "x", level="critical")


def test_connector_helpers_stamp_name_and_stream(events):
    warn("http.rate_limited", stream="/companies/0/jobs/", sleep_seconds=90.0)
    records("/companies/0/jobs/", 30)

    assert [(e.type, e.level, e.connector, e.stream) for e in events] == [
        ("message", "warn", "simpro", "/companies/0/jobs/"),
        ("records", "info", "simpro", "/companies/0/jobs/"),
    ]
    assert events[0].fields == {"sleep_seconds": 90.0}
    assert events[1].count == 30


def test_request_event_fields(events):
    req = RequestDescriptor("PATCH", "/companies/0/sites/4", body={"Name": "HQ"})

    url = "https://x/api/v1.0/companies/0/sites/4"
    request_event("http.request.error", req, url, level="error", status=422, retries=None)

    evt = events[0]
    assert evt.level == "error"
    assert evt.stream == "/companies/0/sites/4"
    assert evt.fields == {"method": "PATCH", "url": url, "status": 422}
