from dataclasses import replace

import pytest

from catchip8.config import EmulatorConfig, QuirkMode, Quirks
from catchip8.errors import ConfigError


def test_vip_preset_is_default():
    assert Quirks.for_mode(QuirkMode.COSMAC_VIP) == Quirks()
    assert EmulatorConfig().quirks == Quirks()


def test_presets_differ_where_interpreters_differ():
    vip = Quirks.for_mode(QuirkMode.COSMAC_VIP)
    chip48 = Quirks.for_mode(QuirkMode.CHIP48)
    schip = Quirks.for_mode(QuirkMode.SUPERCHIP)
    xo = Quirks.for_mode(QuirkMode.XO_CHIP)
    assert vip.shift_uses_vy and not chip48.shift_uses_vy
    assert chip48.jump_uses_vx and not vip.jump_uses_vx
    assert schip.extended_opcodes and xo.extended_opcodes
    assert not vip.extended_opcodes
    assert not xo.clip_sprites
    assert xo.xo_opcodes and not schip.xo_opcodes


def test_quirks_are_immutable():
    with pytest.raises(Exception):
        Quirks().vf_reset = False


def test_quirks_are_independent():
    q = replace(Quirks(), memory_increment=False)
    assert q.shift_uses_vy and not q.memory_increment


def test_derived_values():
    cfg = EmulatorConfig()
    assert cfg.max_rom_size == 4096 - 0x200
    assert cfg.frame_duration == pytest.approx(1 / 60)
    assert cfg.cycles_per_tick == 8


@pytest.mark.parametrize("overrides", [
    {"cpu_frequency": 0},
    {"stack_size": 0},
    {"volume": 1.5},
    {"memory_size": 8192},
    {"program_start": 0x1000},
    {"lores_width": -1},
])
def test_validate_rejects_bad_values(overrides):
    with pytest.raises(ConfigError):
        EmulatorConfig(**overrides).validate()


def test_validate_returns_config():
    cfg = EmulatorConfig()
    assert cfg.validate() is cfg
