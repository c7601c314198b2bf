"""
CHIP-8 machine state.

Everything the interpreter mutates lives on a ``Machine``: memory, the
register file, the call stack, both timers, the keypad latch and the pixel
buffer. The CPU writes it, the timer controller touches the two timers and
the input mapper writes the keypad latch; nothing else does.
"""

import logging
import random
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional, Union

from .config import EmulatorConfig
from .errors import RomLoadError, StackOverflowError, StackUnderflowError

logger = logging.getLogger(__name__)

# ============================================================================
# CHIP-8 FONTS
# ============================================================================

# Standard 4x5 font (0-F) - 80 bytes at font_start
FONT_4X5 = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

# SUPER-CHIP 8x10 font (0-9) - 100 bytes at hires_font_start
FONT_8X10 = bytes([
    0x3C, 0x7E, 0xE7, 0xC3, 0xC3, 0xC3, 0xC3, 0xE7, 0x7E, 0x3C,  # 0
    0x18, 0x38, 0x58, 0x18, 0x18, 0x18, 0x18, 0x18, 0x18, 0x3C,  # 1
    0x3E, 0x7F, 0xC3, 0x06, 0x0C, 0x18, 0x30, 0x60, 0xFF, 0xFF,  # 2
    0x3C, 0x7E, 0xC3, 0x03, 0x0E, 0x0E, 0x03, 0xC3, 0x7E, 0x3C,  # 3
    0x06, 0x0E, 0x1E, 0x36, 0x66, 0xC6, 0xFF, 0xFF, 0x06, 0x06,  # 4
    0xFF, 0xFF, 0xC0, 0xC0, 0xFC, 0xFE, 0x03, 0xC3, 0x7E, 0x3C,  # 5
    0x3E, 0x7C, 0xC0, 0xC0, 0xFC, 0xFE, 0xC3, 0xC3, 0x7E, 0x3C,  # 6
    0xFF, 0xFF, 0x03, 0x06, 0x0C, 0x18, 0x30, 0x60, 0x60, 0x60,  # 7
    0x3C, 0x7E, 0xC3, 0xC3, 0x7E, 0x7E, 0xC3, 0xC3, 0x7E, 0x3C,  # 8
    0x3C, 0x7E, 0xC3, 0xC3, 0x7F, 0x3F, 0x03, 0x03, 0x3E, 0x7C,  # 9
])

NUM_REGISTERS = 16
NUM_KEYS = 16
NUM_RPL_FLAGS = 8
ADDRESS_MASK = 0x0FFF


class KeyWait(Enum):
    """Progress of a blocking FX0A key wait"""
    IDLE = auto()
    AWAITING_PRESS = auto()
    AWAITING_RELEASE = auto()


Display = List[List[bool]]


class Machine:
    """
    Complete CHIP-8 machine state.

    ``v[0xF]`` is an ordinary register that arithmetic, shift and draw
    instructions also overwrite as their carry/borrow/collision flag; the
    last write wins.
    """

    def __init__(self, config: Optional[EmulatorConfig] = None):
        self.config = config or EmulatorConfig()
        cfg = self.config

        # Main memory (4KB), fonts pre-loaded
        self.memory = bytearray(cfg.memory_size)
        self.memory[cfg.font_start:cfg.font_start + len(FONT_4X5)] = FONT_4X5
        self.memory[cfg.hires_font_start:cfg.hires_font_start + len(FONT_8X10)] = FONT_8X10

        # 16 general-purpose 8-bit registers V0-VF
        self.v = [0] * NUM_REGISTERS

        # 16-bit index register
        self.i = 0

        # Program counter (starts at 0x200)
        self.pc = cfg.program_start

        # Return addresses, most recent last
        self.stack: List[int] = []

        # Timers (decrement at 60Hz when non-zero)
        self.delay_timer = 0
        self.sound_timer = 0

        # Input state (16 keys)
        self.keys = [False] * NUM_KEYS

        # FX0A progress
        self.key_wait = KeyWait.IDLE
        self.key_wait_key: Optional[int] = None

        # Display buffer, sized for the current mode
        self.hires_mode = False
        self.display_width = cfg.lores_width
        self.display_height = cfg.lores_height
        self.display: Display = self._blank_display()
        self.draw_flag = False

        # SUPER-CHIP RPL user flags
        self.rpl_flags = [0] * NUM_RPL_FLAGS

        # Set by 00FD
        self.exit_requested = False

        self.rng = random.Random(cfg.seed)

        # ROM info
        self.rom_loaded = False
        self.rom_name = ""
        self.rom_size = 0

        self.cycles = 0

    # ==================== ROM LOADING ====================

    def load_rom(self, data: bytes, name: str = ""):
        """Load ROM into memory starting at program_start"""
        max_size = self.config.max_rom_size
        if len(data) > max_size:
            raise RomLoadError(f"ROM too large: {len(data)} bytes (max {max_size})")
        start = self.config.program_start
        self.memory[start:start + len(data)] = data
        self.rom_loaded = True
        self.rom_name = name or "Unknown"
        self.rom_size = len(data)
        logger.info("Loaded ROM %s (%d bytes)", self.rom_name, self.rom_size)

    def load_rom_file(self, path: Union[str, Path]):
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise RomLoadError(f"ROM file {path} is invalid or does not exist: {e}") from e
        self.load_rom(data, path.name)

    # ==================== STACK ====================

    def push(self, address: int):
        if len(self.stack) >= self.config.stack_size:
            raise StackOverflowError(
                f"stack overflow (depth {len(self.stack)})", self.pc - 2)
        self.stack.append(address)

    def pop(self) -> int:
        if not self.stack:
            raise StackUnderflowError("return with empty stack", self.pc - 2)
        return self.stack.pop()

    # ==================== MEMORY ====================

    def read(self, address: int) -> int:
        return self.memory[address & ADDRESS_MASK]

    def write(self, address: int, value: int):
        self.memory[address & ADDRESS_MASK] = value & 0xFF

    # ==================== DISPLAY ====================

    def _blank_display(self) -> Display:
        return [[False] * self.display_width for _ in range(self.display_height)]

    def clear_display(self):
        for row in self.display:
            for x in range(len(row)):
                row[x] = False
        self.draw_flag = True

    def set_resolution(self, hires: bool):
        """Switch between 64x32 and 128x64; the buffer is cleared."""
        cfg = self.config
        self.hires_mode = hires
        if hires:
            self.display_width, self.display_height = cfg.hires_width, cfg.hires_height
        else:
            self.display_width, self.display_height = cfg.lores_width, cfg.lores_height
        self.display = self._blank_display()
        self.draw_flag = True

    def snapshot(self) -> Display:
        """Copy of the pixel buffer for a renderer on another thread"""
        return [row[:] for row in self.display]

    # ==================== INPUT ====================

    def set_key(self, key: int, pressed: bool):
        self.keys[key & 0x0F] = pressed

    def release_all_keys(self):
        self.keys = [False] * NUM_KEYS

    # ==================== TIMERS ====================

    def update_timers(self):
        """Update delay and sound timers (call at 60Hz)"""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    @property
    def tone(self) -> bool:
        return self.sound_timer > 0

    def dump(self) -> str:
        """Register dump for debug output"""
        lines = [
            f"PC: ${self.pc:04X}  I: ${self.i:04X}  SP: {len(self.stack)}",
            f"DT: {self.delay_timer:3d}  ST: {self.sound_timer:3d}",
        ]
        for i in range(0, NUM_REGISTERS, 4):
            lines.append("  " + " ".join(f"V{j:X}=${self.v[j]:02X}" for j in range(i, i + 4)))
        lines.append(f"Hi-res: {self.hires_mode}  Key wait: {self.key_wait.name}")
        return "\n".join(lines)
