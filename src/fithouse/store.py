"""State store: the single owner of AppState.

All mutation goes through the command methods of ``Store``. A command that
changes state is followed by a full snapshot write and a synchronous
notification of every subscribed observer. Commands issued by an observer
while a notification pass is running are queued and run once the pass ends,
so observers never recurse into the store.

Input values pass through ``fithouse.parsing`` first; a value that fails to
parse rejects the whole command, leaving state untouched.
"""

from __future__ import annotations

import functools
import logging
import sqlite3
from collections import deque
from datetime import date, datetime
from typing import Any, Callable, Optional

from fithouse.db.snapshots import SnapshotStorage
from fithouse.models import (
    MANUAL_ENTRY_NAME,
    AppState,
    CurrentDay,
    DailyLog,
    LogItem,
    default_state,
)
from fithouse.parsing import (
    ParseResult,
    parse_bool,
    parse_date,
    parse_float,
    parse_gender,
    parse_int,
)
from fithouse.serialization import SnapshotError, dumps_state, loads_state

logger = logging.getLogger(__name__)

Observer = Callable[[], None]

PROFILE_FIELDS: dict[str, Callable[[Any], ParseResult]] = {
    "age": parse_int,
    "height": parse_int,
    "base_weight": parse_float,
    "current_weight": parse_float,
    "target_weight": parse_float,
    "start_date": parse_date,
    "target_date": parse_date,
    "gender": parse_gender,
}

SETTINGS_FIELDS: dict[str, Callable[[Any], ParseResult]] = {
    "use_color_coding": parse_bool,
    "deficit_green": parse_int,
    "deficit_yellow": parse_int,
    "deficit_orange": parse_int,
}


def backup_filename(day: date) -> str:
    """Name of the export file for ``day``."""
    return f"fithouse_backup_{day.isoformat()}.json"


def command(method: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a store method as a mutation command.

    While observers are being notified, the call is queued instead of run
    and the caller gets None back.
    """

    @functools.wraps(method)
    def wrapper(self: Store, *args: Any, **kwargs: Any) -> Any:
        if self._notifying:
            logger.debug("Deferring %s issued during notification", method.__name__)
            self._deferred.append(functools.partial(method, self, *args, **kwargs))
            return None
        return method(self, *args, **kwargs)

    return wrapper


class Store:
    """Owns the application state and its persistence."""

    def __init__(
        self,
        storage: SnapshotStorage,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Create a store holding default state.

        Args:
            storage: Snapshot backend written after every command
            clock: Source of the current local time ("today", log ids)
        """
        self.storage = storage
        self.clock = clock
        self.state: AppState = default_state()
        self._listeners: list[Observer] = []
        self._notifying = False
        self._draining = False
        self._deferred: deque[Callable[[], Any]] = deque()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Load the persisted snapshot, if any, merged over defaults.

        A missing snapshot keeps the defaults. A snapshot that cannot be read
        or parsed is logged and ignored.
        """
        try:
            text = self.storage.load()
        except sqlite3.Error:
            logger.exception("Failed to read persisted state")
            return
        if text is None:
            return
        try:
            self.state = loads_state(text, default_state())
        except SnapshotError:
            logger.exception("Failed to load data")

    def subscribe(self, observer: Observer) -> None:
        """Register ``observer``; registering the same callable twice is a no-op."""
        if observer not in self._listeners:
            self._listeners.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        if observer in self._listeners:
            self._listeners.remove(observer)

    def _save(self) -> None:
        try:
            self.storage.save(dumps_state(self.state))
        except (sqlite3.Error, OSError, TypeError, ValueError):
            logger.exception("Failed to persist state")
        self._notify()

    def _notify(self) -> None:
        self._notifying = True
        try:
            for observer in list(self._listeners):
                observer()
        finally:
            self._notifying = False

        if self._draining:
            return
        self._draining = True
        try:
            while self._deferred:
                self._deferred.popleft()()
        finally:
            self._draining = False

    def _reject(self, command_name: str, error: Optional[str]) -> bool:
        logger.warning("Rejected %s: %s", command_name, error)
        return False

    def _next_log_id(self) -> int:
        # Millisecond timestamp, bumped past existing ids to stay unique
        candidate = int(self.clock().timestamp() * 1000)
        existing = max((log.id for log in self.state.logs), default=candidate - 1)
        return max(candidate, existing + 1)

    def _put_log(self, log: DailyLog) -> None:
        index = self.state.find_log(log.date)
        if index is not None:
            self.state.logs[index] = log
        else:
            self.state.logs.append(log)

    # ------------------------------------------------------------------
    # Current day
    # ------------------------------------------------------------------

    @command
    def add_item(self, name: str, points: Any) -> bool:
        """Append an item to the current day.

        Args:
            name: Free-text label
            points: Signed points; fractional input is truncated

        Returns:
            False if ``points`` is not numeric (nothing changes)
        """
        parsed = parse_int(points)
        if not parsed.ok:
            return self._reject("add_item", parsed.error)
        self.state.current_day.items.append(LogItem(name=name, points=parsed.value))
        self._save()
        return True

    @command
    def remove_item(self, index: int) -> None:
        """Remove the current-day item at ``index``; out of range is a no-op."""
        items = self.state.current_day.items
        if 0 <= index < len(items):
            del items[index]
        self._save()

    @command
    def set_daily_weight(self, weight: Any) -> bool:
        """Set today's weight in kg; None clears it."""
        if weight is None:
            self.state.current_day.weight = None
            self._save()
            return True
        parsed = parse_float(weight)
        if not parsed.ok:
            return self._reject("set_daily_weight", parsed.error)
        self.state.current_day.weight = parsed.value
        self._save()
        return True

    @command
    def log_day(self, today: Optional[date] = None) -> bool:
        """Finalize the current day into a DailyLog.

        The log replaces any existing log for the same date. A weight entered
        for the day also becomes the profile's current weight.

        Args:
            today: Date to log under (defaults to the clock's local date)

        Returns:
            True
        """
        state = self.state
        if today is None:
            today = self.clock().date()
        current = state.current_day
        total_points = sum(item.points for item in current.items)

        log = DailyLog(
            id=self._next_log_id(),
            date=today,
            weight=current.weight if current.weight is not None else state.profile.current_weight,
            items=list(current.items),
            total_points=total_points,
        )
        self._put_log(log)

        if current.weight is not None:
            state.profile.current_weight = current.weight

        state.current_day = CurrentDay()
        self._save()
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @command
    def add_historical_log(self, log_date: Any, weight: Any, total_points: Any) -> bool:
        """Add or replace the log for an arbitrary date.

        The log carries a single "Manual Entry" item holding all the points.
        Logs are re-sorted ascending by date afterwards.
        """
        parsed_date = parse_date(log_date)
        parsed_weight = parse_float(weight)
        parsed_points = parse_int(total_points)
        for parsed in (parsed_date, parsed_weight, parsed_points):
            if not parsed.ok:
                return self._reject("add_historical_log", parsed.error)

        log = DailyLog(
            id=self._next_log_id(),
            date=parsed_date.value,
            weight=parsed_weight.value,
            items=[LogItem(name=MANUAL_ENTRY_NAME, points=parsed_points.value)],
            total_points=parsed_points.value,
        )
        self._put_log(log)
        self.state.logs.sort(key=lambda entry: entry.date)
        self._save()
        return True

    @command
    def delete_log(self, log_id: int) -> None:
        """Delete the log with ``log_id``; unknown ids are a no-op."""
        self.state.logs = [log for log in self.state.logs if log.id != log_id]
        self._save()

    @command
    def delete_log_at(self, index: int) -> None:
        """Delete the log at storage position ``index``; out of range is a no-op."""
        if 0 <= index < len(self.state.logs):
            del self.state.logs[index]
        self._save()

    # ------------------------------------------------------------------
    # Profile and settings
    # ------------------------------------------------------------------

    def _parse_fields(
        self,
        command_name: str,
        fields: dict[str, Any],
        parsers: dict[str, Callable[[Any], ParseResult]],
    ) -> Optional[dict[str, Any]]:
        parsed: dict[str, Any] = {}
        for name, raw in fields.items():
            parser = parsers.get(name)
            if parser is None:
                self._reject(command_name, f"unknown field {name!r}")
                return None
            result = parser(raw)
            if not result.ok:
                self._reject(command_name, f"{name}: {result.error}")
                return None
            parsed[name] = result.value
        return parsed

    @command
    def update_profile(self, **fields: Any) -> bool:
        """Shallow-merge ``fields`` into the profile.

        Example:
            store.update_profile(age=31, target_weight="78.5")
        """
        parsed = self._parse_fields("update_profile", fields, PROFILE_FIELDS)
        if parsed is None:
            return False
        for name, value in parsed.items():
            setattr(self.state.profile, name, value)
        self._save()
        return True

    @command
    def update_settings(self, **fields: Any) -> bool:
        """Shallow-merge ``fields`` into the settings."""
        parsed = self._parse_fields("update_settings", fields, SETTINGS_FIELDS)
        if parsed is None:
            return False
        for name, value in parsed.items():
            setattr(self.state.settings, name, value)
        self._save()
        return True

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_data(self) -> str:
        """Return the full state as pretty-printed JSON."""
        return dumps_state(self.state, indent=2)

    @command
    def import_data(self, text: str) -> bool:
        """Replace the whole state with an exported snapshot.

        The snapshot goes through the same default merge as startup loading.

        Returns:
            True on success; False if the text is not a valid snapshot, in
            which case the state is unchanged
        """
        try:
            state = loads_state(text, default_state())
        except SnapshotError:
            logger.exception("Failed to import data")
            return False
        self.state = state
        self._save()
        return True

    @command
    def reset_data(self) -> None:
        """Replace the state with defaults."""
        self.state = default_state()
        self._save()
