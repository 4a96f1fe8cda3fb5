"""Tests for the user notice pathway and the error boundary."""

from shared.application.notices import NoticeLevel, NoticeSink, error_boundary, report_error


class NameMissing(Exception):
    notice_level = 'warning'


class DiskFull(Exception):
    notice_level = 'error'
    retryable = True


def test_warning_level_exception_becomes_warning():
    sink = NoticeSink()

    notice = report_error(sink, NameMissing("Name is required"))

    assert notice.level is NoticeLevel.WARNING
    assert notice.message == "Name is required"
    assert not notice.retryable


def test_error_level_exception_keeps_retry_flag():
    sink = NoticeSink()

    notice = report_error(sink, DiskFull("Could not save"))

    assert notice.level is NoticeLevel.ERROR
    assert notice.retryable
    assert sink.notices == [notice]


def test_boundary_converts_unexpected_exceptions():
    sink = NoticeSink()
    seen = []
    sink.subscribe(seen.append)

    with error_boundary(sink, "render month"):
        raise KeyError("day")

    assert len(seen) == 1
    assert seen[0].level is NoticeLevel.ERROR
    assert seen[0].retryable


def test_boundary_passes_through_on_success():
    sink = NoticeSink()

    with error_boundary(sink):
        value = 1 + 1

    assert value == 2
    assert sink.notices == []


def test_dismiss_removes_notice():
    sink = NoticeSink()
    notice = sink.success("Booking saved")

    sink.dismiss(notice)

    assert sink.notices == []


def test_broken_listener_does_not_lose_notice():
    sink = NoticeSink()

    def broken(notice):
        raise RuntimeError("toast layer down")

    sink.subscribe(broken)
    sink.info("Synced")

    assert len(sink.notices) == 1
