"""Pomodoro focus/break state machine.

The engine owns the current ``PomodoroState`` and replaces it on every
transition; each public method returns the new snapshot. Ticking is driven
from outside (see ``study_planner.timer``), one call per second.

Breaks roll straight back into focus when they run out. A finished focus
segment instead waits for the caller: ``continue_to_break`` logs the elapsed
time and moves on, ``skip_to_break`` moves on without logging, and
``end_without_register`` drops the session entirely.

Each task of the chain is logged as its own entry when it finishes, rather
than one entry for the whole chain, so a single entry always covers one
uninterrupted stretch of focus.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from study_planner.errors import PomodoroConfigError
from study_planner.models import (
    RUNNING_STATUSES,
    PomodoroSettings,
    PomodoroState,
    PomodoroStatus,
    StudyLogEntry,
    Topic,
)
from study_planner.sequence import SequenceState

BREAK_STATUSES = (PomodoroStatus.SHORT_BREAK, PomodoroStatus.LONG_BREAK)


@dataclass(frozen=True)
class PendingTransition:
    """A finished focus segment waiting for the user to log or skip it."""

    state: PomodoroState
    effective_time_spent: int  # seconds
    topic: Optional[Topic] = None

    @property
    def minutes(self) -> int:
        return self.effective_time_spent // 60


class PomodoroEngine:
    def __init__(
        self,
        settings: PomodoroSettings,
        topic_lookup: Optional[Callable[[str], Optional[Topic]]] = None,
        sequence_query: Optional[Callable[[], Optional[SequenceState]]] = None,
        log_sink: Optional[Callable[[StudyLogEntry], object]] = None,
    ):
        self.settings = settings
        self._topic_lookup = topic_lookup or (lambda item_id: None)
        self._sequence_query = sequence_query or (lambda: None)
        self._log_sink = log_sink
        self._listeners: list[Callable[[PomodoroState], None]] = []
        self._manual_elapsed: Optional[int] = None
        self.pending: Optional[PendingTransition] = None
        self.state = PomodoroState(time_remaining=self._first_task_duration())

    # --- plumbing ---

    def subscribe(self, listener: Callable[[PomodoroState], None]) -> Callable[[], None]:
        """Call ``listener`` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set(self, bump: bool = False, **changes) -> PomodoroState:
        if bump:
            changes["key"] = self.state.key + 1
        self.state = replace(self.state, **changes)
        for listener in list(self._listeners):
            listener(self.state)
        return self.state

    def _first_task_duration(self) -> int:
        return self.settings.tasks[0].duration if self.settings.tasks else 0

    @property
    def awaiting_confirmation(self) -> bool:
        return self.pending is not None

    @property
    def current_task(self):
        index = self.state.current_task_index
        if self.state.is_custom_duration or index is None or not 0 <= index < len(self.settings.tasks):
            return None
        return self.settings.tasks[index]

    def elapsed_seconds(self, state: Optional[PomodoroState] = None) -> int:
        """Seconds spent in the current focus segment."""
        state = state or self.state
        if state.is_custom_duration and state.original_duration:
            planned = state.original_duration
        else:
            index = state.current_task_index
            if index is not None and 0 <= index < len(self.settings.tasks):
                planned = self.settings.tasks[index].duration
            else:
                planned = self._first_task_duration()
        return max(0, planned - state.time_remaining)

    # --- transitions ---

    def start_for_item(self, item_id: str, item_type: str = "topic", custom_duration: Optional[int] = None) -> PomodoroState:
        """Start a focus session for a topic or revision target.

        Raises PomodoroConfigError, leaving the state untouched, when there
        are no focus tasks configured and no custom duration is given.
        """
        if custom_duration is not None and custom_duration <= 0:
            raise PomodoroConfigError("Custom focus duration must be positive")
        if not custom_duration and not self.settings.tasks:
            raise PomodoroConfigError("Configure at least one focus task or pass a custom duration")

        duration = custom_duration or self._first_task_duration()
        self.pending = None
        self._manual_elapsed = None
        logger.debug(f"Focus started for {item_type} {item_id} ({duration}s)")
        return self._set(
            bump=True,
            status=PomodoroStatus.FOCUS,
            time_remaining=duration,
            current_task_index=None if custom_duration else 0,
            current_cycle=0,
            associated_item_id=item_id,
            associated_item_type=item_type,
            previous_status=None,
            original_duration=duration,
            is_custom_duration=bool(custom_duration),
        )

    def pause(self) -> PomodoroState:
        if self.state.status not in RUNNING_STATUSES:
            return self.state
        return self._set(status=PomodoroStatus.PAUSED, previous_status=self.state.status)

    def resume(self) -> PomodoroState:
        if self.state.status != PomodoroStatus.PAUSED or self.state.previous_status is None:
            return self.state
        return self._set(bump=True, status=self.state.previous_status, previous_status=None)

    def toggle_pause(self) -> PomodoroState:
        if self.state.status == PomodoroStatus.PAUSED:
            return self.resume()
        return self.pause()

    def tick(self, key: Optional[int] = None) -> PomodoroState:
        """Count down one second. Ticks from a stale generation are ignored."""
        state = self.state
        if state.status not in RUNNING_STATUSES or self.pending is not None:
            return state
        if key is not None and key != state.key:
            return state
        remaining = max(0, state.time_remaining - 1)
        self._set(time_remaining=remaining)
        if remaining == 0:
            return self._complete_phase()
        return self.state

    def advance_cycle(self) -> PomodoroState:
        """Finish the current phase now, keeping the time actually spent."""
        state = self.state
        if state.status not in RUNNING_STATUSES or self.pending is not None:
            return state
        if state.status == PomodoroStatus.FOCUS:
            self._manual_elapsed = self.elapsed_seconds(state)
        self._set(bump=True, time_remaining=0)
        return self._complete_phase()

    def _complete_phase(self) -> PomodoroState:
        state = self.state
        if state.status in BREAK_STATUSES:
            return self._start_focus_block()

        elapsed = self._manual_elapsed if self._manual_elapsed is not None else self.elapsed_seconds(state)
        self._manual_elapsed = None
        topic = self._topic_lookup(state.associated_item_id) if state.associated_item_id else None
        self.pending = PendingTransition(state=state, effective_time_spent=elapsed, topic=topic)
        # Notify so drivers see the pending confirmation.
        return self._set()

    def _start_focus_block(self) -> PomodoroState:
        # Without a task chain a custom session can only repeat its own length.
        if not self.settings.tasks and self.state.is_custom_duration and self.state.original_duration:
            return self._set(bump=True, status=PomodoroStatus.FOCUS, time_remaining=self.state.original_duration)
        first = self._first_task_duration()
        return self._set(
            bump=True,
            status=PomodoroStatus.FOCUS,
            current_task_index=0,
            time_remaining=first,
            original_duration=first,
            is_custom_duration=False,
        )

    def _start_break(self) -> PomodoroState:
        cycle = self.state.current_cycle + 1
        long_break = cycle % self.settings.cycles_until_long_break == 0
        return self._set(
            bump=True,
            status=PomodoroStatus.LONG_BREAK if long_break else PomodoroStatus.SHORT_BREAK,
            time_remaining=self.settings.long_break_duration if long_break else self.settings.short_break_duration,
            current_cycle=cycle,
            pomodoros_completed_today=self.state.pomodoros_completed_today + 1,
            previous_status=None,
        )

    def continue_to_break(self) -> PomodoroState:
        """Log the finished segment, then go to the next task or to a break."""
        pending = self.pending
        if pending is None:
            return self.state
        self.pending = None
        self._record(pending)

        finished = pending.state
        if not finished.is_custom_duration:
            next_index = (finished.current_task_index or 0) + 1
            if next_index < len(self.settings.tasks):
                return self._set(
                    bump=True,
                    status=PomodoroStatus.FOCUS,
                    current_task_index=next_index,
                    time_remaining=self.settings.tasks[next_index].duration,
                )
        return self._start_break()

    def skip_to_break(self) -> PomodoroState:
        """Go to a break without logging the finished segment."""
        if self.pending is None:
            return self.state
        self.pending = None
        return self._start_break()

    def end_without_register(self) -> PomodoroState:
        """Stop the session without logging; a pending confirmation is dropped."""
        if self.pending is not None:
            logger.debug("Pending focus log cancelled")
        self.pending = None
        self._manual_elapsed = None
        return self._set(
            bump=True,
            status=PomodoroStatus.IDLE,
            time_remaining=self._first_task_duration(),
            current_task_index=0,
            previous_status=None,
            associated_item_id=None,
            associated_item_type=None,
            original_duration=None,
            is_custom_duration=False,
        )

    def update_settings(self, settings: PomodoroSettings) -> PomodoroState:
        """Swap settings. An idle timer is re-derived; a running one picks them up next phase."""
        self.settings = settings
        if self.state.status != PomodoroStatus.IDLE:
            return self.state
        return self._set(bump=True, time_remaining=self._first_task_duration(), current_task_index=0)

    # --- logging ---

    def _record(self, pending: PendingTransition) -> Optional[StudyLogEntry]:
        topic = pending.topic
        if topic is None:
            logger.debug("Focus segment has no topic; nothing to log")
            return None
        if pending.minutes <= 0:
            logger.debug(f"Focus segment of {pending.effective_time_spent}s is under a minute; not logged")
            return None

        sequence = self._sequence_query()
        entry = StudyLogEntry(
            id=str(uuid.uuid4()),
            subject_id=topic.subject_id,
            topic_id=topic.id,
            date=datetime.now().isoformat(),
            duration=pending.minutes,
            source="pomodoro",
            sequence_item_index=sequence.attributable_index(topic.subject_id) if sequence else None,
        )
        if self._log_sink is not None:
            try:
                self._log_sink(entry)
            except Exception:
                # The session keeps running even if storage is unavailable.
                logger.exception(f"Could not store pomodoro log {entry.id}")
        return entry
