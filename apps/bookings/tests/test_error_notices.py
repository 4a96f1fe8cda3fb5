"""Tests for how booking errors reach the user as notices."""

import pytest

from apps.bookings.domain.entities import BookingDraft
from apps.bookings.domain.exceptions import IntegrityError, SyncError, ValidationError
from shared.application.notices import NoticeLevel, NoticeSink, error_boundary, report_error


def test_validation_error_becomes_warning():
    sink = NoticeSink()

    notice = report_error(sink, ValidationError({"name": "Name is required"}))

    assert notice.level is NoticeLevel.WARNING
    assert "name" in notice.message
    assert not notice.retryable


@pytest.mark.parametrize("error", [IntegrityError("Stored bookings must be a list"), SyncError("quota")])
def test_storage_errors_are_retryable_errors(error):
    sink = NoticeSink()

    notice = report_error(sink, error)

    assert notice.level is NoticeLevel.ERROR
    assert notice.retryable
    assert notice.message == str(error)


def test_invalid_draft_inside_boundary_shows_warning(store):
    sink = NoticeSink()

    with error_boundary(sink, "create booking"):
        store.create(BookingDraft(name="", start_date="2024-02-15", end_date="2024-02-18"))

    assert [n.level for n in sink.notices] == [NoticeLevel.WARNING]
    assert store.bookings == ()


def test_failing_redraw_reaches_the_user(make_store, hansen):
    sink = NoticeSink()
    x = make_store()
    y = make_store(on_error=lambda e: report_error(sink, e))

    def redraw(bookings):
        raise RuntimeError("render failed")

    y.on_external_change(redraw)
    x.create(hansen)

    assert len(sink.notices) == 1
    assert sink.notices[0].level is NoticeLevel.ERROR
    assert sink.notices[0].retryable
