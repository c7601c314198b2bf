import pytest

from catchip8.config import EmulatorConfig, QuirkMode, Quirks
from catchip8.emulator import Chip8Emulator, EmulatorState
from catchip8.errors import RomLoadError, StackUnderflowError
from catchip8.machine import KeyWait

from conftest import assemble


def test_starts_stopped(emulator):
    assert emulator.state is EmulatorState.STOPPED
    result = emulator.run_frame()
    assert result.state is EmulatorState.STOPPED
    assert result.cycles == 0


def test_load_rom_starts_running(emulator):
    emulator.load_rom(assemble(0x6005, 0x6103, 0x8014, 0x1206), "add")
    assert emulator.state is EmulatorState.RUNNING
    result = emulator.run_frame()
    assert result.cycles == 8
    m = emulator.machine
    assert m.v[0] == 8
    assert m.v[0xF] == 0
    assert m.pc == 0x206


def test_rom_too_large_never_runs(emulator):
    with pytest.raises(RomLoadError):
        emulator.load_rom(bytes(4096 - 0x200 + 1))
    assert emulator.state is EmulatorState.STOPPED


def test_empty_rom_is_rejected(emulator):
    with pytest.raises(RomLoadError):
        emulator.load_rom(b"")


def test_rom_file(tmp_path, emulator):
    rom = tmp_path / "loop.ch8"
    rom.write_bytes(assemble(0x1200))
    emulator.load_rom_file(rom)
    assert emulator.machine.rom_name == "loop.ch8"
    with pytest.raises(RomLoadError):
        emulator.load_rom_file(tmp_path / "nope.ch8")
    assert emulator.state is EmulatorState.RUNNING


def test_fault_stops_the_run(emulator):
    emulator.load_rom(assemble(0x6001, 0x00EE, 0x6002))
    result = emulator.run_frame()
    assert result.state is EmulatorState.FAULTED
    assert result.cycles == 2
    assert isinstance(emulator.fault, StackUnderflowError)
    assert emulator.fault.address == 0x202
    assert emulator.machine.v[0] == 1

    again = emulator.run_frame()
    assert again.cycles == 0
    assert emulator.machine.v[0] == 1


def test_fetch_fault_at_end_of_memory(emulator):
    emulator.load_rom(assemble(0x1FFE))
    emulator.machine.memory[0xFFE:0x1000] = bytes([0x60, 0x01])
    emulator.run_frame()
    assert emulator.state is EmulatorState.FAULTED


def test_reset_reloads_rom_and_clears_fault(emulator):
    emulator.load_rom(assemble(0x6001, 0x00EE))
    emulator.run_frame()
    old_machine = emulator.machine
    emulator.reset()
    assert emulator.state is EmulatorState.RUNNING
    assert emulator.fault is None
    assert emulator.machine is not old_machine
    assert emulator.machine.v[0] == 0
    assert emulator.machine.pc == 0x200


def test_reset_with_new_config(emulator):
    emulator.load_rom(assemble(0x1200))
    emulator.reset(EmulatorConfig(cpu_frequency=600, quirks=Quirks.for_mode(QuirkMode.CHIP48)))
    assert emulator.cpu.quirks.jump_uses_vx
    assert emulator.run_frame().cycles == 10


def test_reset_without_rom(emulator):
    emulator.reset()
    assert emulator.state is EmulatorState.STOPPED


def test_pause_freezes_cycles_and_timers(emulator):
    emulator.load_rom(assemble(0x1200))
    emulator.machine.delay_timer = 10
    emulator.machine.sound_timer = 10
    assert emulator.toggle_pause() is EmulatorState.PAUSED
    result = emulator.run_frame()
    assert result.cycles == 0
    assert not result.tone
    assert emulator.machine.delay_timer == 10
    assert emulator.toggle_pause() is EmulatorState.RUNNING
    result = emulator.run_frame()
    assert result.tone
    assert emulator.machine.delay_timer == 9


def test_tone_follows_sound_timer(emulator):
    emulator.load_rom(assemble(0x6102, 0xF118, 0x1204))
    first = emulator.run_frame()
    assert first.tone
    second = emulator.run_frame()
    assert not second.tone


def test_key_wait_ends_the_batch(emulator):
    emulator.load_rom(assemble(0xF20A, 0x1202))
    result = emulator.run_frame()
    assert result.cycles == 1
    assert emulator.machine.key_wait is KeyWait.AWAITING_PRESS

    emulator.set_key(9, True)
    emulator.run_frame()
    emulator.set_key(9, False)
    emulator.run_frame()
    assert emulator.machine.v[2] == 9
    assert emulator.machine.pc == 0x202


def test_timers_keep_running_during_key_wait(emulator):
    emulator.load_rom(assemble(0xF00A))
    emulator.machine.delay_timer = 3
    emulator.run_frame()
    emulator.run_frame()
    assert emulator.machine.delay_timer == 1


def test_redraw_handoff(emulator):
    emulator.load_rom(assemble(0x00E0, 0xD015, 0x1204))
    result = emulator.run_frame()
    assert result.redraw
    snapshot = emulator.consume_redraw()
    assert snapshot[0][0]
    assert emulator.consume_redraw() is None
    assert not emulator.run_frame().redraw


def test_exit_opcode_quits():
    emulator = Chip8Emulator(EmulatorConfig(quirks=Quirks.for_mode(QuirkMode.SUPERCHIP)))
    emulator.load_rom(assemble(0x6001, 0x00FD))
    assert emulator.run_frame().state is EmulatorState.QUIT
    assert emulator.run() is EmulatorState.QUIT


def test_speed_controls(emulator):
    assert emulator.faster() == 2
    assert emulator.faster() == 4
    assert emulator.slower() == 2
    emulator.load_rom(assemble(0x1200))
    assert emulator.run_frame().cycles == 16


def test_release_keys_drops_held_keys(emulator):
    emulator.load_rom(assemble(0x1200))
    emulator.set_key(0x3, True)
    emulator.set_key(0xA, True)
    emulator.release_keys()
    assert not any(emulator.machine.keys)


def test_run_headless_for_frames(emulator):
    emulator.load_rom(assemble(0x7001, 0x1200))
    sleeps = []
    frames = []
    state = emulator.run(frames=3, sleep=sleeps.append, on_frame=frames.append)
    assert state is EmulatorState.RUNNING
    assert len(frames) == 3
    assert emulator.machine.v[0] == 12
    assert all(s > 0 for s in sleeps)


def test_instances_do_not_share_state():
    a = Chip8Emulator(EmulatorConfig(seed=1))
    b = Chip8Emulator(EmulatorConfig(seed=1))
    rom = assemble(0xC0FF, 0xF00A)
    a.load_rom(rom)
    b.load_rom(rom)
    a.run_frame()
    b.run_frame()
    assert a.machine.v[0] == b.machine.v[0]
    a.set_key(3, True)
    assert not b.machine.keys[3]
