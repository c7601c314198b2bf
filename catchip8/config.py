"""
Emulator configuration: quirk profiles and run settings.

A run is configured once, before the first cycle. Speed changes and resets
build a fresh config with ``dataclasses.replace`` rather than mutating the
one the machine was built from.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from .errors import ConfigError


class QuirkMode(Enum):
    """CHIP-8 interpreter quirk modes for compatibility"""
    COSMAC_VIP = auto()      # Original COSMAC VIP behavior
    CHIP48 = auto()          # CHIP-48 (HP48) behavior
    SUPERCHIP = auto()       # SUPER-CHIP 1.1
    XO_CHIP = auto()         # XO-CHIP extended


@dataclass(frozen=True)
class Quirks:
    """
    Behavioral switches that differ between historical interpreters.

    Every switch is independent so a ROM that needs an unusual mix can
    still be run; ``for_mode`` gives the usual bundles.
    """
    vf_reset: bool = True            # 8XY1/2/3 reset VF to 0
    shift_uses_vy: bool = True       # 8XY6/8XYE shift VY (VIP) vs VX (CHIP-48)
    jump_uses_vx: bool = False       # BNNN adds VX (CHIP-48) vs V0 (VIP)
    memory_increment: bool = True    # FX55/FX65 leave I past the last register
    clip_sprites: bool = True        # Sprites clip at screen edge instead of wrapping
    extended_opcodes: bool = False   # SUPER-CHIP 1.1 instructions
    xo_opcodes: bool = False         # XO-CHIP additions: 5XY2/5XY3, 00DN, DXY0 in low-res

    @classmethod
    def for_mode(cls, mode: QuirkMode) -> "Quirks":
        return _PRESETS[mode]


_PRESETS = {
    QuirkMode.COSMAC_VIP: Quirks(),
    QuirkMode.CHIP48: Quirks(
        vf_reset=False, shift_uses_vy=False, jump_uses_vx=True,
        memory_increment=False, clip_sprites=True, extended_opcodes=False,
    ),
    QuirkMode.SUPERCHIP: Quirks(
        vf_reset=False, shift_uses_vy=False, jump_uses_vx=True,
        memory_increment=False, clip_sprites=True, extended_opcodes=True,
    ),
    QuirkMode.XO_CHIP: Quirks(
        vf_reset=False, shift_uses_vy=False, jump_uses_vx=False,
        memory_increment=True, clip_sprites=False, extended_opcodes=True,
        xo_opcodes=True,
    ),
}


@dataclass(frozen=True)
class EmulatorConfig:
    """Emulator configuration settings"""
    # Memory
    memory_size: int = 4096
    program_start: int = 0x200
    font_start: int = 0x000
    hires_font_start: int = 0x050  # SUPER-CHIP large font, right after the small one

    # Display
    lores_width: int = 64
    lores_height: int = 32
    hires_width: int = 128
    hires_height: int = 64

    # Timing
    cpu_frequency: int = 500      # Instructions per second
    timer_frequency: int = 60     # Timer decrement rate (Hz)

    # Stack
    stack_size: int = 16          # Original: 12, most use 16

    quirks: Quirks = field(default_factory=Quirks)

    # Random source; None seeds from the OS
    seed: Optional[int] = None

    # Front end
    scale_factor: int = 10
    fg_color: str = "#C0C0C0"
    bg_color: str = "#1A1A1A"
    tone_frequency: int = 440
    volume: float = 0.25

    @property
    def cycles_per_tick(self) -> int:
        """Instructions executed per 60 Hz tick"""
        return max(1, self.cpu_frequency // self.timer_frequency)

    @property
    def max_rom_size(self) -> int:
        return self.memory_size - self.program_start

    @property
    def frame_duration(self) -> float:
        return 1.0 / self.timer_frequency

    def validate(self) -> "EmulatorConfig":
        """Check the settings are usable; returns self so it can be chained."""
        if self.memory_size != 4096:
            raise ConfigError(f"memory size must be 4096 bytes, got {self.memory_size}")
        if not 0 <= self.program_start < self.memory_size:
            raise ConfigError(f"program start ${self.program_start:04X} outside memory")
        for name in ("lores_width", "lores_height", "hires_width", "hires_height",
                     "cpu_frequency", "timer_frequency", "stack_size", "scale_factor",
                     "tone_frequency"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 <= self.volume <= 1.0:
            raise ConfigError(f"volume must be between 0 and 1, got {self.volume}")
        return self
