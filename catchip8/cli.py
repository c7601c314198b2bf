"""Command-line entry point."""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .config import EmulatorConfig, QuirkMode, Quirks
from .emulator import Chip8Emulator, EmulatorState
from .errors import ConfigError, RomLoadError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOAD_ERROR = 1
EXIT_FAULT = 2

QUIRK_FLAGS = (
    ("vf_reset", "8XY1/2/3 reset VF"),
    ("shift_uses_vy", "8XY6/8XYE shift VY into VX"),
    ("jump_uses_vx", "BNNN jumps relative to VX instead of V0"),
    ("memory_increment", "FX55/FX65 advance I"),
    ("clip_sprites", "clip sprites at the screen edge instead of wrapping"),
    ("extended_opcodes", "enable SUPER-CHIP instructions"),
    ("xo_opcodes", "enable XO-CHIP additions (5XY2/5XY3, 00DN, low-res DXY0)"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catchip8",
        description="Cat's Chip-8 Emulator - CHIP-8/SUPER-CHIP/XO-CHIP interpreter",
    )
    parser.add_argument("rom", nargs="?", help="ROM file to run")
    parser.add_argument("--mode", choices=[m.name.lower() for m in QuirkMode],
                        default="cosmac_vip", help="quirk profile (default: %(default)s)")
    parser.add_argument("--ips", type=int, default=EmulatorConfig.cpu_frequency,
                        help="instructions per second (default: %(default)s)")
    parser.add_argument("--stack-size", type=int, default=EmulatorConfig.stack_size)
    parser.add_argument("--seed", type=int, help="seed for CXNN random numbers")
    parser.add_argument("--scale", type=int, default=EmulatorConfig.scale_factor,
                        help="window pixels per CHIP-8 pixel")
    parser.add_argument("--fg", default=EmulatorConfig.fg_color, help="pixel on color")
    parser.add_argument("--bg", default=EmulatorConfig.bg_color, help="pixel off color")
    parser.add_argument("--volume", type=float, default=EmulatorConfig.volume)

    quirks = parser.add_argument_group("quirk overrides")
    for name, help_text in QUIRK_FLAGS:
        quirks.add_argument(f"--{name.replace('_', '-')}", dest=name,
                            action=argparse.BooleanOptionalAction, default=None,
                            help=help_text)

    parser.add_argument("--headless", action="store_true", help="run without a window")
    parser.add_argument("--frames", type=int, help="stop after this many frames (headless)")
    parser.add_argument("--unthrottled", action="store_true",
                        help="do not idle between frames (headless)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> EmulatorConfig:
    quirks = Quirks.for_mode(QuirkMode[args.mode.upper()])
    overrides = {name: getattr(args, name) for name, _ in QUIRK_FLAGS
                 if getattr(args, name) is not None}
    if overrides:
        quirks = replace(quirks, **overrides)
    return EmulatorConfig(
        cpu_frequency=args.ips,
        stack_size=args.stack_size,
        quirks=quirks,
        seed=args.seed,
        scale_factor=args.scale,
        fg_color=args.fg,
        bg_color=args.bg,
        volume=args.volume,
    ).validate()


def run_headless(config: EmulatorConfig, rom: str, frames: Optional[int],
                 throttle: bool = True) -> int:
    emulator = Chip8Emulator(config)
    emulator.load_rom_file(rom)
    state = emulator.run(frames=frames, throttle=throttle)
    if state is EmulatorState.FAULTED:
        print(emulator.machine.dump(), file=sys.stderr)
        return EXIT_FAULT
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
        if args.headless:
            if not args.rom:
                logger.error("--headless needs a ROM")
                return EXIT_LOAD_ERROR
            return run_headless(config, args.rom, args.frames, not args.unthrottled)

        from .gui import Chip8GUI
        app = Chip8GUI(config)
        if args.rom:
            # Schedule ROM load after GUI is ready
            app.root.after(100, lambda: app.load_rom(args.rom))
        app.run()
    except (ConfigError, RomLoadError) as e:
        logger.error("%s", e)
        return EXIT_LOAD_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
