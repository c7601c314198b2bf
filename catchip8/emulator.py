"""
Emulation loop.

``Chip8Emulator`` owns one ``Machine`` and its CPU and runs them a frame at
a time: a batch of instructions, one timer tick, then a report of what the
front end needs to do (redraw, tone on/off, how long to idle). Front ends
call ``run_frame`` from their own event loop; ``run`` is a blocking loop
for headless use.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional, Union

from .config import EmulatorConfig
from .cpu import Chip8CPU
from .errors import MachineFault, RomLoadError
from .machine import Display, KeyWait, Machine
from .timers import TimerController

logger = logging.getLogger(__name__)


class EmulatorState(Enum):
    STOPPED = auto()    # No ROM loaded
    RUNNING = auto()
    PAUSED = auto()
    QUIT = auto()
    FAULTED = auto()    # Structural fault; only reset() leaves this state


@dataclass
class FrameResult:
    """What one frame did and what the front end should do about it"""
    state: EmulatorState
    cycles: int = 0
    redraw: bool = False
    tone: bool = False
    idle: float = 0.0


class Chip8Emulator:
    """Complete emulator: machine, CPU and timer cadence."""

    def __init__(self, config: Optional[EmulatorConfig] = None,
                 clock: Callable[[], float] = time.perf_counter):
        self.config = (config or EmulatorConfig()).validate()
        self.machine = Machine(self.config)
        self.cpu = Chip8CPU(self.machine)
        self.timers = TimerController(self.config, clock)
        self.state = EmulatorState.STOPPED
        self.fault: Optional[MachineFault] = None
        self._rom: Optional[bytes] = None
        self._rom_name = ""

    # ==================== LIFECYCLE ====================

    def load_rom(self, data: bytes, name: str = ""):
        """
        Start a fresh run of ``data``.

        Raises RomLoadError without touching the current run if the ROM
        does not fit.
        """
        if not data:
            raise RomLoadError(f"ROM {name or 'Unknown'} is empty")
        machine = Machine(self.config)
        machine.load_rom(data, name)
        self._install(machine)
        self._rom = bytes(data)
        self._rom_name = machine.rom_name

    def load_rom_file(self, path: Union[str, Path]):
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise RomLoadError(f"ROM file {path} is invalid or does not exist: {e}") from e
        self.load_rom(data, path.name)

    def reset(self, config: Optional[EmulatorConfig] = None):
        """
        Restart the current ROM, optionally under a new configuration.

        The replacement machine is fully built before the old one is
        dropped.
        """
        if config is not None:
            self.config = config.validate()
            self.timers.config = self.config
            self.timers.clock.frame_duration = self.config.frame_duration
        machine = Machine(self.config)
        if self._rom is None:
            self.machine = machine
            self.cpu = Chip8CPU(machine)
            self.state = EmulatorState.STOPPED
            self.fault = None
            return
        machine.load_rom(self._rom, self._rom_name)
        self._install(machine)
        logger.info("Reset %s", self._rom_name)

    def _install(self, machine: Machine):
        cpu = Chip8CPU(machine)
        self.machine, self.cpu = machine, cpu
        self.fault = None
        self.state = EmulatorState.RUNNING

    def toggle_pause(self) -> EmulatorState:
        if self.state is EmulatorState.RUNNING:
            self.state = EmulatorState.PAUSED
        elif self.state is EmulatorState.PAUSED:
            self.state = EmulatorState.RUNNING
        return self.state

    def quit(self):
        self.state = EmulatorState.QUIT

    def set_speed(self, multiplier: int) -> int:
        return self.timers.set_speed(multiplier)

    def faster(self) -> int:
        return self.set_speed(self.timers.speed_multiplier * 2)

    def slower(self) -> int:
        return self.set_speed(self.timers.speed_multiplier // 2)

    # ==================== INPUT / OUTPUT ====================

    def set_key(self, key: int, pressed: bool):
        self.machine.set_key(key, pressed)

    def release_keys(self):
        """Drop every held key, e.g. when the window loses focus"""
        self.machine.release_all_keys()

    def consume_redraw(self) -> Optional[Display]:
        """Snapshot of the pixel buffer if it changed since the last call"""
        if not self.machine.draw_flag:
            return None
        self.machine.draw_flag = False
        return self.machine.snapshot()

    @property
    def tone(self) -> bool:
        return self.state is EmulatorState.RUNNING and self.machine.tone

    # ==================== EXECUTION ====================

    def step(self) -> bool:
        """
        Run one instruction.

        Returns False when the current batch should end: the machine is
        not running, it faulted or exited, or it is parked in a key wait
        and needs fresh input.
        """
        if self.state is not EmulatorState.RUNNING:
            return False
        try:
            self.cpu.step()
        except MachineFault as e:
            self.fault = e
            self.state = EmulatorState.FAULTED
            logger.error("Machine fault: %s", e)
            return False
        if self.machine.exit_requested:
            logger.info("Program exited")
            self.state = EmulatorState.QUIT
            return False
        return self.machine.key_wait is KeyWait.IDLE

    def run_frame(self) -> FrameResult:
        """Execute one 60 Hz frame."""
        self.timers.clock.start_frame()
        result = FrameResult(self.state)
        if self.state is EmulatorState.RUNNING:
            result.cycles = self.timers.run_batch(self.step)
            if self.state is EmulatorState.RUNNING:
                self.timers.tick(self.machine)
        result.state = self.state
        result.tone = self.tone
        result.redraw = self.machine.draw_flag
        result.idle = self.timers.clock.idle_time()
        return result

    def run(self, frames: Optional[int] = None, throttle: bool = True,
            sleep: Callable[[float], None] = time.sleep,
            on_frame: Optional[Callable[[FrameResult], None]] = None) -> EmulatorState:
        """
        Run frames until the program quits or faults, or ``frames`` have run.
        """
        count = 0
        while self.state in (EmulatorState.RUNNING, EmulatorState.PAUSED):
            if frames is not None and count >= frames:
                break
            result = self.run_frame()
            count += 1
            if on_frame is not None:
                on_frame(result)
            if throttle and result.idle > 0:
                sleep(result.idle)
        return self.state
