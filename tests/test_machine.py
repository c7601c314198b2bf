import pytest

from catchip8.config import EmulatorConfig
from catchip8.errors import RomLoadError, StackOverflowError, StackUnderflowError
from catchip8.machine import FONT_4X5, FONT_8X10, KeyWait, Machine


def test_power_on_state():
    m = Machine()
    assert m.pc == 0x200
    assert m.v == [0] * 16
    assert m.i == 0
    assert m.stack == []
    assert m.delay_timer == m.sound_timer == 0
    assert m.keys == [False] * 16
    assert m.key_wait is KeyWait.IDLE
    assert len(m.display) == 32 and len(m.display[0]) == 64
    assert not m.draw_flag


def test_fonts_are_preloaded():
    m = Machine()
    assert bytes(m.memory[0:80]) == FONT_4X5
    start = m.config.hires_font_start
    assert bytes(m.memory[start:start + 100]) == FONT_8X10


def test_load_rom_places_bytes_at_program_start():
    m = Machine()
    m.load_rom(b"\x60\x05\x61\x03", "add.ch8")
    assert bytes(m.memory[0x200:0x204]) == b"\x60\x05\x61\x03"
    assert m.rom_loaded
    assert m.rom_name == "add.ch8"
    assert m.rom_size == 4


def test_largest_rom_fits():
    m = Machine()
    m.load_rom(bytes([0xAA]) * (4096 - 0x200))
    assert m.memory[4095] == 0xAA


def test_oversized_rom_is_rejected():
    m = Machine()
    with pytest.raises(RomLoadError):
        m.load_rom(bytes(4096 - 0x200 + 1))
    assert not m.rom_loaded


def test_missing_rom_file(tmp_path):
    with pytest.raises(RomLoadError):
        Machine().load_rom_file(tmp_path / "missing.ch8")


def test_stack_capacity_follows_config():
    m = Machine(EmulatorConfig(stack_size=12))
    for n in range(12):
        m.push(0x200 + n * 2)
    with pytest.raises(StackOverflowError):
        m.push(0x300)
    assert m.pop() == 0x216


def test_pop_empty_stack():
    with pytest.raises(StackUnderflowError):
        Machine().pop()


def test_timers_floor_at_zero():
    m = Machine()
    m.delay_timer, m.sound_timer = 2, 1
    m.update_timers()
    assert (m.delay_timer, m.sound_timer) == (1, 0)
    assert not m.tone
    m.update_timers()
    m.update_timers()
    assert (m.delay_timer, m.sound_timer) == (0, 0)


def test_snapshot_is_a_copy():
    m = Machine()
    snap = m.snapshot()
    m.display[0][0] = True
    assert not snap[0][0]


def test_keys_are_masked_to_keypad():
    m = Machine()
    m.set_key(0x1F, True)
    assert m.keys[0xF]
    m.release_all_keys()
    assert not any(m.keys)


def test_memory_access_is_masked():
    m = Machine()
    m.write(0x1005, 0x1FF)
    assert m.memory[0x005] == 0xFF
    assert m.read(0x1005) == 0xFF


def test_separate_machines_have_independent_random_sources():
    a = Machine(EmulatorConfig(seed=3))
    b = Machine(EmulatorConfig(seed=3))
    assert [a.rng.randint(0, 255) for _ in range(5)] == [b.rng.randint(0, 255) for _ in range(5)]


def test_dump_mentions_registers():
    m = Machine()
    m.v[0xA] = 0x42
    assert "VA=$42" in m.dump()
