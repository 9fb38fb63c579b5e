"""
Shift, break and stop timing kept on the device.

Local state is the source of truth for the driver: every change is
persisted and pushed to subscribers immediately, and the matching server
calls (clock in/out) are best-effort afterwards. A failed server call is
logged and never rolls local state back.

One tracker covers one UTC calendar day; state stored for another day is
discarded on load.
"""

import enum
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from lastmile.driver.api import DriverApi
from lastmile.driver.errors import DriverApiError
from lastmile.driver.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

TRACKER_STORAGE_KEY = "time_tracker"

# Soft limits; exceeding them only produces a warning
BREAK_LIMITS = {
    "lunch": 30 * 60,
    "short": 15 * 60,
}


class BreakType(str, enum.Enum):
    LUNCH = "lunch"
    SHORT = "short"


class BreakRecord(BaseModel):
    type: BreakType
    start: datetime
    end: Optional[datetime] = None
    duration: Optional[int] = None


class StopRecord(BaseModel):
    delivery_id: int
    arrived_at: datetime
    left_at: Optional[datetime] = None
    duration: Optional[int] = None


class ShiftData(BaseModel):
    date: str
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    breaks: List[BreakRecord] = Field(default_factory=list)
    stops: List[StopRecord] = Field(default_factory=list)


class TrackerState(BaseModel):
    is_on_duty: bool = False
    is_on_break: bool = False
    break_type: Optional[BreakType] = None
    current_stop_id: Optional[int] = None
    shift_data: ShiftData


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _seconds(start: datetime, end: datetime) -> int:
    return max(int((end - start).total_seconds()), 0)


def format_duration(seconds: int) -> str:
    """1h 5m, 4m 10s, 9s."""
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


Listener = Callable[[TrackerState], None]


class TimeTracker:
    def __init__(
        self,
        store: KeyValueStore,
        api: Optional[DriverApi] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.api = api
        self.token_provider = token_provider
        self.clock = clock
        self._listeners: List[Listener] = []
        self.state = self._load()

    # Persistence

    def _today(self) -> str:
        return self.clock().astimezone(timezone.utc).date().isoformat()

    def _default_state(self) -> TrackerState:
        return TrackerState(shift_data=ShiftData(date=self._today()))

    def _load(self) -> TrackerState:
        raw = self.store.get(TRACKER_STORAGE_KEY)
        if not raw:
            return self._default_state()

        try:
            state = TrackerState.model_validate(raw)
        except ValidationError:
            logger.error("Stored time tracker state is corrupt, starting fresh", exc_info=True)
            return self._default_state()

        if state.shift_data.date != self._today():
            logger.info("Stored shift is from %s, starting a new day", state.shift_data.date)
            return self._default_state()

        return state

    def _commit(self) -> None:
        try:
            self.store.set(TRACKER_STORAGE_KEY, self.state.model_dump(mode="json"))
        except StorageError:
            logger.error("Failed to persist time tracker state", exc_info=True)

        for listener in list(self._listeners):
            listener(self.get_state())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener now and after every change; returns an unsubscribe function."""
        self._listeners.append(listener)
        listener(self.get_state())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_state(self) -> TrackerState:
        return self.state.model_copy(deep=True)

    async def _notify_server(self, call_name: str) -> None:
        if self.api is None or self.token_provider is None:
            return
        token = self.token_provider()
        if not token:
            return
        try:
            await getattr(self.api, call_name)(token)
        except DriverApiError as exc:
            logger.warning("Shift %s not recorded on server: %s", call_name, exc)

    # Clock in/out

    async def clock_in(self) -> None:
        if self.state.is_on_duty:
            return

        # Clocking in again after a clock-out starts a new work period
        shift = self.state.shift_data
        self.state.is_on_duty = True
        shift.clock_in = self.clock()
        shift.clock_out = None
        self._commit()

        await self._notify_server("start_shift")

    async def clock_out(self) -> None:
        if not self.state.is_on_duty:
            return

        if self.state.is_on_break:
            self._close_break()
        if self.state.current_stop_id is not None:
            self._close_stop(self.state.current_stop_id)

        self.state.is_on_duty = False
        self.state.shift_data.clock_out = self.clock()
        self._commit()

        await self._notify_server("end_shift")

    # Breaks

    def start_break(self, break_type: BreakType) -> None:
        if not self.state.is_on_duty or self.state.is_on_break:
            return

        break_type = BreakType(break_type)
        self.state.is_on_break = True
        self.state.break_type = break_type
        self.state.shift_data.breaks.append(BreakRecord(type=break_type, start=self.clock()))
        self._commit()

    def _close_break(self) -> None:
        for record in reversed(self.state.shift_data.breaks):
            if record.end is None:
                record.end = self.clock()
                record.duration = _seconds(record.start, record.end)
                break

        self.state.is_on_break = False
        self.state.break_type = None

    def end_break(self) -> None:
        if not self.state.is_on_break:
            return
        self._close_break()
        self._commit()

    # Stops

    def start_stop(self, delivery_id: int) -> None:
        if not self.state.is_on_duty or self.state.is_on_break:
            return
        if self.state.current_stop_id == delivery_id:
            return

        if self.state.current_stop_id is not None:
            self._close_stop(self.state.current_stop_id)

        self.state.current_stop_id = delivery_id
        self.state.shift_data.stops.append(StopRecord(delivery_id=delivery_id, arrived_at=self.clock()))
        self._commit()

    def _close_stop(self, delivery_id: int) -> None:
        for record in reversed(self.state.shift_data.stops):
            if record.delivery_id == delivery_id and record.left_at is None:
                record.left_at = self.clock()
                record.duration = _seconds(record.arrived_at, record.left_at)
                break

        if self.state.current_stop_id == delivery_id:
            self.state.current_stop_id = None

    def end_stop(self, delivery_id: int) -> None:
        self._close_stop(delivery_id)
        self._commit()

    # Queries (whole seconds; open records run until now)

    def get_total_work_time(self) -> int:
        shift = self.state.shift_data
        if shift.clock_in is None:
            return 0
        return _seconds(shift.clock_in, shift.clock_out or self.clock())

    def get_total_break_time(self) -> int:
        """Breaks taken in the current work period."""
        shift = self.state.shift_data
        now = self.clock()
        return sum(
            record.duration if record.duration is not None else _seconds(record.start, record.end or now)
            for record in shift.breaks
            if shift.clock_in is None or record.start >= shift.clock_in
        )

    def get_active_time(self) -> int:
        return max(self.get_total_work_time() - self.get_total_break_time(), 0)

    def get_stop_duration(self, delivery_id: int) -> int:
        """Duration of the most recent visit to a stop."""
        for record in reversed(self.state.shift_data.stops):
            if record.delivery_id == delivery_id:
                if record.duration is not None:
                    return record.duration
                return _seconds(record.arrived_at, self.clock())
        return 0

    def get_completed_stops_count(self) -> int:
        return sum(1 for record in self.state.shift_data.stops if record.left_at is not None)

    def get_average_stop_time(self) -> int:
        completed = [r.duration for r in self.state.shift_data.stops if r.duration is not None]
        if not completed:
            return 0
        return sum(completed) // len(completed)

    def get_current_break_duration(self) -> int:
        if not self.state.is_on_break:
            return 0
        for record in reversed(self.state.shift_data.breaks):
            if record.end is None:
                return _seconds(record.start, self.clock())
        return 0

    def get_break_warning(self) -> Optional[str]:
        """Message when the running break is over its soft limit, else None."""
        if not self.state.is_on_break or self.state.break_type is None:
            return None

        limit = BREAK_LIMITS[self.state.break_type.value]
        elapsed = self.get_current_break_duration()
        if elapsed <= limit:
            return None

        return (
            f"{self.state.break_type.value.capitalize()} break is over the "
            f"{format_duration(limit)} limit by {format_duration(elapsed - limit)}"
        )

    format_duration = staticmethod(format_duration)
