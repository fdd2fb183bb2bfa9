"""Asyncio driver that ticks a PomodoroEngine once per interval.

Exactly one ticking loop exists per running generation of the engine: any
change of ``key`` or status cancels the loop and starts a fresh one, and each
loop passes its generation key to ``tick`` so a late wake-up is ignored.
"""
import asyncio
from typing import Callable, Optional

from loguru import logger

from study_planner.models import PomodoroState, PomodoroStatus, RUNNING_STATUSES
from study_planner.pomodoro import PomodoroEngine


class PomodoroTimer:
    def __init__(
        self,
        engine: PomodoroEngine,
        interval: float = 1.0,
        on_tick: Optional[Callable[[PomodoroState], None]] = None,
    ):
        self.engine = engine
        self.interval = interval
        self.on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._task_key: Optional[int] = None
        self._started = False
        self._phase_done: Optional[asyncio.Event] = None
        engine.subscribe(self._on_change)

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def needs_user(self) -> bool:
        """True when the engine cannot progress without input."""
        status = self.engine.state.status
        return status in (PomodoroStatus.IDLE, PomodoroStatus.PAUSED) or self.engine.awaiting_confirmation

    def _should_tick(self) -> bool:
        return self.engine.state.status in RUNNING_STATUSES and not self.engine.awaiting_confirmation

    def _on_change(self, state: PomodoroState) -> None:
        if not self._started:
            return
        self.sync()
        if self._phase_done is not None and self.needs_user():
            self._phase_done.set()

    def sync(self) -> None:
        """Restart the loop if the engine moved to a new generation."""
        if self._should_tick():
            key = self.engine.state.key
            if self.active and self._task_key == key:
                return
            self.cancel()
            self._task_key = key
            self._task = asyncio.get_running_loop().create_task(self._run(key))
            logger.trace(f"Ticking generation {key}")
        else:
            self.cancel()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._task_key = None

    def start(self) -> None:
        """Begin following the engine. Must be called with an event loop running."""
        self._started = True
        self.sync()

    def stop(self) -> None:
        self._started = False
        self.cancel()

    async def _run(self, key: int) -> None:
        while True:
            await asyncio.sleep(self.interval)
            state = self.engine.tick(key)
            if self.on_tick is not None:
                self.on_tick(state)

    async def run_phase(self) -> PomodoroState:
        """Tick until the engine is idle, paused, or waiting for confirmation."""
        self._phase_done = asyncio.Event()
        self.start()
        if self.needs_user():
            self._phase_done.set()
        try:
            await self._phase_done.wait()
        finally:
            self.stop()
            self._phase_done = None
        return self.engine.state
