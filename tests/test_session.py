import threading

import pytest

from report import degenerate_report
from session import AnalysisSession


def test_publish_resolves_waiters_once() -> None:
    session = AnalysisSession.create()
    first = degenerate_report("first")
    second = degenerate_report("second")
    results = []

    waiter = threading.Thread(target=lambda: results.append(session.wait_report(timeout=5)))
    waiter.start()
    session.publish(first)
    waiter.join(timeout=5)
    session.publish(second)

    assert results == [first]
    assert session.wait_report(timeout=0) is first
    assert session.report is second
    assert session.is_ready


def test_fail_clears_data_and_raises_for_waiters() -> None:
    session = AnalysisSession.create()
    session.set_records([{"Date": "2025-04-17"}])

    session.fail(ValueError("bad export"))

    assert session.records is None
    assert session.report is None
    assert not session.is_ready
    with pytest.raises(ValueError):
        session.wait_report(timeout=0)


def test_clear_keeps_resolved_state() -> None:
    session = AnalysisSession.create()
    session.set_records([{"Date": "2025-04-17"}])
    session.clear()
    assert session.records is None
    assert not session.ready.done()
