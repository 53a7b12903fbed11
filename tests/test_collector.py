from __future__ import annotations

from hypothesis import given, strategies as st

from wb.config import Verbosity
from wb.metrics import FailureRecord, ResponseRecord, Statistics

MS = 1_000_000

records = st.one_of(
    st.builds(
        ResponseRecord,
        elapsed_ns=st.integers(min_value=0, max_value=60_000 * MS),
        status_code=st.sampled_from([200, 201, 301, 404, 500, 503]),
        content_length=st.integers(min_value=0, max_value=10_000),
    ),
    st.builds(FailureRecord, error=st.just(OSError("connection refused"))),
)


@given(st.lists(records, min_size=1, max_size=200))
def test_aggregates_account_for_every_record(batch: list) -> None:
    stats = Statistics()
    for idx, record in enumerate(batch):
        stats.observe(idx, record)
    assert sum(stats.status_codes.values()) + len(stats.errors) == len(batch)
    assert stats.observed == len(batch)
    if stats.num_calls > 0:
        assert stats.min_ns <= stats.average_ns() <= stats.max_ns
        assert stats.min_ms() <= stats.average_ms() <= stats.max_ms()
    else:
        assert stats.average_ns() is None
        assert stats.min_ns is None and stats.max_ns is None


def test_first_success_sets_both_bounds() -> None:
    stats = Statistics()
    stats.observe(0, ResponseRecord(elapsed_ns=20 * MS, status_code=200, content_length=0))
    assert stats.min_ns == stats.max_ns == 20 * MS
    stats.observe(1, ResponseRecord(elapsed_ns=20 * MS, status_code=200, content_length=0))
    stats.observe(2, ResponseRecord(elapsed_ns=5 * MS, status_code=200, content_length=0))
    stats.observe(3, ResponseRecord(elapsed_ns=40 * MS, status_code=404, content_length=0))
    assert stats.min_ms() == 5
    assert stats.max_ms() == 40
    assert stats.average_ms() == 21
    assert stats.status_codes == {200: 3, 404: 1}


def test_failures_do_not_touch_latency() -> None:
    stats = Statistics()
    stats.observe(0, FailureRecord(error=OSError("boom"), elapsed_ns=900 * MS))
    assert stats.num_calls == 0
    assert stats.total_ns == 0
    assert stats.status_codes == {}
    assert stats.average_ms() is None
    report = stats.final_report("http://example.test/")
    assert report.avg_ms is None
    assert "no successful calls" in report.render()
    assert "no successful calls" in stats.snapshot()


def test_per_call_lines_include_failures() -> None:
    lines: list[str] = []
    stats = Statistics(verbosity=Verbosity.PER_CALL, emit=lines.append)
    stats.observe(0, FailureRecord(error=OSError("refused")))
    stats.observe(1, ResponseRecord(elapsed_ns=12 * MS, status_code=200, content_length=2, body=b"ok"))
    assert len(lines) == 2
    assert "Error" in lines[0]
    assert "Stat:200" in lines[1]
    assert "Len:     2" in lines[1]
    assert lines[1].endswith("|ok")


def test_periodic_snapshot_every_hundredth_success() -> None:
    lines: list[str] = []
    stats = Statistics(verbosity=Verbosity.PERIODIC, emit=lines.append)
    for idx in range(250):
        stats.observe(idx, ResponseRecord(elapsed_ns=MS, status_code=200, content_length=0))
        stats.observe(idx, FailureRecord(error=OSError("refused")))
    assert len(lines) == 2
    assert lines[0].startswith("Calls:    100")
    assert lines[1].startswith("Calls:    200")


def test_silent_verbosity_emits_nothing() -> None:
    lines: list[str] = []
    stats = Statistics(emit=lines.append)
    for idx in range(150):
        stats.observe(idx, ResponseRecord(elapsed_ns=MS, status_code=200, content_length=0))
    assert lines == []


def test_final_report_render() -> None:
    stats = Statistics()
    stats.observe(0, ResponseRecord(elapsed_ns=10 * MS, status_code=200, content_length=0))
    stats.observe(1, ResponseRecord(elapsed_ns=30 * MS, status_code=500, content_length=0))
    stats.observe(2, FailureRecord(error=ValueError("bad")))
    report = stats.final_report("http://example.test/", elapsed_sec=2.0)
    assert report.attempted == 3
    assert report.successful == 2
    assert (report.min_ms, report.avg_ms, report.max_ms) == (10, 20, 30)
    assert report.requests_per_sec == 1.5
    assert report.status_frame()["calls"].sum() == 2
    text = report.render()
    assert "URL: http://example.test/" in text
    assert "Status 200: 1 Calls" in text
    assert "Status 500: 1 Calls" in text
    assert "Error 0 (unclassified): ValueError: bad" in text
