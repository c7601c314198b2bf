"""Exceptions raised by the emulator core."""

from typing import Optional


class Chip8Error(Exception):
    """Base class for every emulator error"""


class ConfigError(Chip8Error, ValueError):
    """Unusable configuration value"""


class RomLoadError(Chip8Error, ValueError):
    """ROM could not be read or does not fit in program memory"""


class MachineFault(Chip8Error):
    """
    Structural fault that ends the current run.

    ``address`` is the program counter of the instruction that faulted,
    when known.
    """

    def __init__(self, message: str, address: Optional[int] = None):
        if address is not None:
            message = f"{message} at ${address:04X}"
        super().__init__(message)
        self.address = address


class StackOverflowError(MachineFault):
    """2NNN with the call stack already full"""


class StackUnderflowError(MachineFault):
    """00EE with an empty call stack"""


class FetchFault(MachineFault):
    """Program counter ran outside memory"""
