"""
Write-through local view of each business's schedule.

Edits are applied to the local view before the store confirms them. Any
failure of the write throws the optimistic change away and replaces the view
with a fresh snapshot from the store; writes are never retried blindly.

The view is bounded: the least recently used businesses are evicted once
more than `max_size` are held, and an entry older than `ttl_seconds` is
treated as absent so the next read goes back to the store.
"""
from collections import OrderedDict
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar
import asyncio
import logging
import time

from business_hours.core.config import settings
from business_hours.core.errors import PersistenceError, SchedulingError
from business_hours.db.repository import ScheduleRepository
from business_hours.schemas.availability import BusinessSchedule

logger = logging.getLogger(__name__)

T = TypeVar("T")

class ScheduleCache:

    def __init__(
        self,
        repository: ScheduleRepository,
        max_size: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.repository = repository
        self.max_size = max_size if max_size is not None else settings.SCHEDULE_CACHE_SIZE
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SCHEDULE_CACHE_TTL_SECONDS
        self._clock = clock
        self._schedules: "OrderedDict[str, Tuple[float, BusinessSchedule]]" = OrderedDict()
        self._writes_in_flight: Dict[str, int] = {}
        # Refreshes in flight per business; marked stale when the view changes under them
        self._refreshing: Dict[str, List[dict]] = {}

    def __len__(self) -> int:
        return len(self._schedules)

    def writing(self, business_id: str) -> bool:
        return self._writes_in_flight.get(business_id, 0) > 0

    def _changed(self, business_id: str) -> None:
        for pending in self._refreshing.get(business_id, ()):
            pending["stale"] = True

    def get(self, business_id: str) -> Optional[BusinessSchedule]:
        cached = self._schedules.get(business_id)
        if cached is None:
            return None

        stored_at, schedule = cached
        if self.ttl_seconds and self._clock() - stored_at > self.ttl_seconds and not self.writing(business_id):
            del self._schedules[business_id]
            return None

        self._schedules.move_to_end(business_id)
        return schedule

    def put(self, schedule: BusinessSchedule) -> None:
        self._schedules[schedule.businessId] = (self._clock(), schedule)
        self._schedules.move_to_end(schedule.businessId)

        while len(self._schedules) > self.max_size:
            oldest = next((key for key in self._schedules if not self.writing(key)), None)
            if oldest is None:
                break
            del self._schedules[oldest]
            logger.debug(f"Evicted schedule for business {oldest} from the local view")

    def invalidate(self, business_id: str) -> None:
        self._schedules.pop(business_id, None)
        self._changed(business_id)

    async def refresh(self, business_id: str) -> BusinessSchedule:
        """
        Fetch the store's schedule and keep it, unless a local write started
        or settled meanwhile; that write's view is served instead.
        """
        pending = {"stale": False}
        self._refreshing.setdefault(business_id, []).append(pending)
        try:
            schedule = await self.repository.load_snapshot(business_id)
        finally:
            self._refreshing[business_id].remove(pending)
            if not self._refreshing[business_id]:
                del self._refreshing[business_id]

        if self.writing(business_id) or pending["stale"]:
            return self.get(business_id) or schedule

        self.put(schedule)
        return schedule

    async def reconcile(self, business_id: str) -> None:
        """Replace the local view with the store's; drop it if the store is unreachable"""
        logger.warning(f"Reconciling schedule for business {business_id} after a failed write")
        if self.writing(business_id):
            # Another write is still pending; the next read refetches
            self.invalidate(business_id)
            return
        try:
            await self.refresh(business_id)
        except PersistenceError as e:
            logger.error(f"Reconciliation fetch failed for business {business_id}: {e}")
            self.invalidate(business_id)

    async def write_through(
        self,
        business_id: str,
        write: Callable[[], Awaitable[T]],
        optimistic: Optional[Callable[[BusinessSchedule], BusinessSchedule]] = None,
        commit: Optional[Callable[[BusinessSchedule, T], BusinessSchedule]] = None,
        timeout: Optional[float] = None
    ) -> T:
        """
        Run one write against the store.

        `optimistic` is applied to the local view before the write, `commit`
        after it succeeds with the write's result. A timeout counts as a
        persistence failure.
        """
        self._writes_in_flight[business_id] = self._writes_in_flight.get(business_id, 0) + 1
        self._changed(business_id)
        try:
            try:
                current = self.get(business_id)
                if current is not None and optimistic is not None:
                    self.put(optimistic(current.model_copy(deep=True)))

                if timeout:
                    result = await asyncio.wait_for(write(), timeout)
                else:
                    result = await write()
            finally:
                self._writes_in_flight[business_id] -= 1
                if not self._writes_in_flight[business_id]:
                    del self._writes_in_flight[business_id]
                self._changed(business_id)
        except asyncio.TimeoutError as e:
            await self.reconcile(business_id)
            raise PersistenceError("Timed out waiting for the store") from e
        except SchedulingError:
            await self.reconcile(business_id)
            raise

        current = self.get(business_id)
        if current is not None and commit is not None:
            self.put(commit(current, result))
        return result
