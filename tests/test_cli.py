from catchip8.cli import (EXIT_FAULT, EXIT_LOAD_ERROR, EXIT_OK, build_parser,
                          config_from_args, main)
from catchip8.config import QuirkMode, Quirks

from conftest import assemble


def parse(*argv):
    return config_from_args(build_parser().parse_args(list(argv)))


def test_defaults():
    cfg = parse()
    assert cfg.cpu_frequency == 500
    assert cfg.quirks == Quirks.for_mode(QuirkMode.COSMAC_VIP)


def test_mode_and_quirk_overrides():
    cfg = parse("--mode", "superchip", "--no-clip-sprites", "--vf-reset", "--ips", "900")
    assert cfg.quirks.extended_opcodes
    assert not cfg.quirks.clip_sprites
    assert cfg.quirks.vf_reset
    assert cfg.cpu_frequency == 900


def test_headless_run(tmp_path):
    rom = tmp_path / "loop.ch8"
    rom.write_bytes(assemble(0x1200))
    assert main([str(rom), "--headless", "--frames", "2", "--unthrottled"]) == EXIT_OK


def test_headless_fault_exit_code(tmp_path):
    rom = tmp_path / "bad.ch8"
    rom.write_bytes(assemble(0x00EE))
    assert main([str(rom), "--headless", "--unthrottled"]) == EXIT_FAULT


def test_missing_rom_exit_code(tmp_path):
    assert main([str(tmp_path / "missing.ch8"), "--headless"]) == EXIT_LOAD_ERROR


def test_bad_config_exit_code(tmp_path):
    rom = tmp_path / "loop.ch8"
    rom.write_bytes(assemble(0x1200))
    assert main([str(rom), "--headless", "--ips", "0"]) == EXIT_LOAD_ERROR


def test_headless_without_rom_is_a_load_error():
    assert main(["--headless"]) == EXIT_LOAD_ERROR


def test_xo_opcodes_override():
    cfg = parse("--mode", "superchip", "--xo-opcodes")
    assert cfg.quirks.extended_opcodes and cfg.quirks.xo_opcodes
