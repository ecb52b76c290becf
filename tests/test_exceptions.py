import pytest
from datetime import date, time

from business_hours.core.errors import DuplicateException, InvalidException, InvalidOrder, NotFound
from business_hours.schemas.availability import AvailabilitySource, AvailabilityState
from business_hours.schemas.exception import AvailabilityExceptionCreate
from business_hours.services.exception_service import ExceptionStore, validate_exception

from conftest import BUSINESS_ID, TODAY

christmas_closure = {
    "exceptionDate": date(2024, 12, 25),
    "isClosed": True,
    "reason": "Christmas"
}

lunch_block = {
    "exceptionDate": date(2024, 12, 17),
    "isClosed": True,
    "openTime": time(12, 0),
    "closeTime": time(13, 0),
    "reason": "Staff lunch"
}

def test_exception_kinds():
    closure = AvailabilityExceptionCreate(**christmas_closure)
    block = AvailabilityExceptionCreate(**lunch_block)
    assert closure.is_full_day_closure and not closure.is_blocked_window
    assert block.is_blocked_window and not block.is_full_day_closure

def test_reason_is_required():
    for reason in (None, "", "  ", "ab"):
        with pytest.raises(InvalidException):
            validate_exception(AvailabilityExceptionCreate(**{**christmas_closure, "reason": reason}), TODAY)

def test_past_dates_are_rejected():
    with pytest.raises(InvalidException):
        validate_exception(AvailabilityExceptionCreate(**christmas_closure), today=date(2025, 1, 1))

def test_times_must_come_in_pairs():
    exception_in = AvailabilityExceptionCreate(**{**lunch_block, "closeTime": None})
    with pytest.raises(InvalidException):
        validate_exception(exception_in, TODAY)

def test_special_hours_need_a_valid_window():
    no_times = AvailabilityExceptionCreate(exceptionDate=date(2024, 12, 21), isClosed=False, reason="Holiday market")
    with pytest.raises(InvalidException):
        validate_exception(no_times, TODAY)

    backwards = AvailabilityExceptionCreate(
        exceptionDate=date(2024, 12, 21),
        isClosed=False,
        openTime=time(15, 0),
        closeTime=time(10, 0),
        reason="Holiday market"
    )
    with pytest.raises(InvalidOrder):
        validate_exception(backwards, TODAY)

def test_short_blocked_window_is_allowed():
    short_block = AvailabilityExceptionCreate(**{**lunch_block, "closeTime": time(12, 10)})
    validate_exception(short_block, TODAY)

@pytest.mark.asyncio
async def test_second_exception_for_a_date_is_rejected(seeded_repository, editor):
    """
    1. Close Christmas day
    2. Try to add a blocked window on the same date
    3. The original closure is unchanged
    """
    first = await editor.add_exception(
        BUSINESS_ID, AvailabilityExceptionCreate(**christmas_closure), today=TODAY
    )
    assert first.applied

    with pytest.raises(DuplicateException) as exc_info:
        await editor.add_exception(
            BUSINESS_ID,
            AvailabilityExceptionCreate(**{**lunch_block, "exceptionDate": date(2024, 12, 25)}),
            today=TODAY
        )
    assert exc_info.value.existing_id == first.exception.id

    stored = list(seeded_repository.exceptions.values())
    assert len(stored) == 1
    assert stored[0].is_full_day_closure
    assert stored[0].reason == "Christmas"

@pytest.mark.asyncio
async def test_store_rejects_duplicate_date(seeded_repository):
    store = ExceptionStore(seeded_repository)
    await store.create(BUSINESS_ID, AvailabilityExceptionCreate(**christmas_closure))

    with pytest.raises(DuplicateException):
        await store.create(BUSINESS_ID, AvailabilityExceptionCreate(**christmas_closure))

@pytest.mark.asyncio
async def test_reason_is_stored_trimmed(seeded_repository, editor):
    outcome = await editor.add_exception(
        BUSINESS_ID,
        AvailabilityExceptionCreate(**{**christmas_closure, "reason": "  Christmas  "}),
        created_by="owner-1",
        today=TODAY
    )
    assert outcome.exception.reason == "Christmas"
    assert outcome.exception.createdBy == "owner-1"

@pytest.mark.asyncio
async def test_added_exception_reaches_local_view(seeded_repository, editor):
    await editor.load_schedule(BUSINESS_ID)

    outcome = await editor.add_exception(BUSINESS_ID, AvailabilityExceptionCreate(**lunch_block), today=TODAY)

    cached = editor.cache.get(BUSINESS_ID)
    assert [e.id for e in cached.exceptions] == [outcome.exception.id]

@pytest.mark.asyncio
async def test_list_exceptions_in_date_order(seeded_repository):
    store = ExceptionStore(seeded_repository)
    await store.create(BUSINESS_ID, AvailabilityExceptionCreate(**christmas_closure))
    await store.create(BUSINESS_ID, AvailabilityExceptionCreate(**lunch_block))

    listed = await store.list_exceptions(BUSINESS_ID)
    assert [e.exceptionDate for e in listed] == [date(2024, 12, 17), date(2024, 12, 25)]

@pytest.mark.asyncio
async def test_delete_is_idempotent(seeded_repository, editor):
    created = await editor.add_exception(BUSINESS_ID, AvailabilityExceptionCreate(**christmas_closure), today=TODAY)

    assert await editor.remove_exception(BUSINESS_ID, created.exception.id) is True
    assert await editor.remove_exception(BUSINESS_ID, created.exception.id) is False
    assert seeded_repository.exceptions == {}

@pytest.mark.asyncio
async def test_delete_racing_another_delete(seeded_repository, monkeypatch):
    store = ExceptionStore(seeded_repository)
    created = await store.create(BUSINESS_ID, AvailabilityExceptionCreate(**christmas_closure))

    async def already_removed(business_id, exception_id):
        return False

    monkeypatch.setattr(seeded_repository, "delete_exception", already_removed)

    with pytest.raises(NotFound):
        await store.delete(BUSINESS_ID, created.id)

@pytest.mark.asyncio
async def test_deleting_an_exception_restores_the_weekly_result(seeded_repository, editor, resolver):
    """
    1. Close Monday 2024-12-16 with an exception
    2. Remove it again
    3. The date resolves from the weekly entry, as before
    """
    monday = date(2024, 12, 16)
    before = await resolver.resolve(BUSINESS_ID, monday)
    closure = AvailabilityExceptionCreate(exceptionDate=monday, isClosed=True, reason="Training day")

    created = await editor.add_exception(BUSINESS_ID, closure, today=TODAY)
    closed = await resolver.resolve(BUSINESS_ID, monday)
    assert closed.state == AvailabilityState.CLOSED
    assert closed.source == AvailabilitySource.EXCEPTION

    assert await editor.remove_exception(BUSINESS_ID, created.exception.id) is True

    after = await resolver.resolve(BUSINESS_ID, monday)
    assert after.state == AvailabilityState.OPEN
    assert after.source == AvailabilitySource.WEEKLY
    assert (after.openTime, after.closeTime) == (time(9, 0), time(17, 0))
    assert after == before
