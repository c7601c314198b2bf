"""
60 Hz timer tick and frame pacing.

The CPU runs in batches: ``cycles_per_tick`` instructions, then one timer
tick, then an idle period long enough to keep the batches 1/60 s apart.
A batch that overruns its frame just skips the idle; no instructions are
dropped to catch up.
"""

import logging
import time
from typing import Callable

from .config import EmulatorConfig
from .machine import Machine

logger = logging.getLogger(__name__)

MAX_SPEED_MULTIPLIER = 16


class FrameClock:
    """Measures one frame's work and reports how long to idle after it"""

    def __init__(self, frame_duration: float, clock: Callable[[], float] = time.perf_counter):
        self.frame_duration = frame_duration
        self._clock = clock
        self._frame_start = clock()
        self.overruns = 0

    def start_frame(self):
        self._frame_start = self._clock()

    def elapsed(self) -> float:
        return self._clock() - self._frame_start

    def idle_time(self) -> float:
        """Seconds to wait before the next frame; 0 when the frame overran"""
        remaining = self.frame_duration - self.elapsed()
        if remaining <= 0:
            self.overruns += 1
            return 0.0
        return remaining


class TimerController:
    """
    Drives the delay/sound timers and the per-tick instruction budget.
    """

    def __init__(self, config: EmulatorConfig, clock: Callable[[], float] = time.perf_counter):
        self.config = config
        self.speed_multiplier = 1
        self.clock = FrameClock(config.frame_duration, clock)

    @property
    def cycles_per_tick(self) -> int:
        return self.config.cycles_per_tick * self.speed_multiplier

    def set_speed(self, multiplier: int) -> int:
        """Clamp and apply a speed multiplier; returns the value in effect."""
        self.speed_multiplier = max(1, min(MAX_SPEED_MULTIPLIER, multiplier))
        logger.debug("Speed %dx (%d cycles/tick)", self.speed_multiplier, self.cycles_per_tick)
        return self.speed_multiplier

    def tick(self, machine: Machine) -> bool:
        """Decrement both timers; returns True while the tone should sound."""
        machine.update_timers()
        return machine.tone

    def run_batch(self, step: Callable[[], bool]) -> int:
        """
        Call ``step`` up to ``cycles_per_tick`` times.

        ``step`` returns False to end the batch early (key wait, fault,
        exit). Returns the number of steps taken.
        """
        executed = 0
        for _ in range(self.cycles_per_tick):
            executed += 1
            if not step():
                break
        return executed
