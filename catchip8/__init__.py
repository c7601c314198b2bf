"""
Cat's Chip-8 Emulator
CHIP-8 / SUPER-CHIP / XO-CHIP interpreter core with a Tkinter front end.
"""

from .config import EmulatorConfig, QuirkMode, Quirks
from .cpu import Chip8CPU
from .decode import Instruction, fetch
from .emulator import Chip8Emulator, EmulatorState, FrameResult
from .errors import (Chip8Error, ConfigError, FetchFault, MachineFault,
                     RomLoadError, StackOverflowError, StackUnderflowError)
from .machine import KeyWait, Machine

__version__ = "1.0.0"

__all__ = [
    "Chip8CPU", "Chip8Emulator", "Chip8Error", "ConfigError", "EmulatorConfig",
    "EmulatorState", "FetchFault", "FrameResult", "Instruction", "KeyWait",
    "Machine", "MachineFault", "QuirkMode", "Quirks", "RomLoadError",
    "StackOverflowError", "StackUnderflowError", "fetch",
]
