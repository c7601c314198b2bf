"""Shared fixtures: machines and CPUs built from opcode lists."""

from dataclasses import replace

import pytest

from catchip8.config import EmulatorConfig, QuirkMode, Quirks
from catchip8.cpu import Chip8CPU
from catchip8.decode import Instruction
from catchip8.emulator import Chip8Emulator
from catchip8.machine import Machine


def assemble(*opcodes: int) -> bytes:
    """Big-endian bytes for a list of 16-bit opcodes"""
    out = bytearray()
    for op in opcodes:
        out += bytes([(op >> 8) & 0xFF, op & 0xFF])
    return bytes(out)


def build_cpu(*opcodes: int, mode: QuirkMode = QuirkMode.COSMAC_VIP, seed: int = 1234,
              **quirk_overrides) -> Chip8CPU:
    quirks = replace(Quirks.for_mode(mode), **quirk_overrides)
    machine = Machine(EmulatorConfig(quirks=quirks, seed=seed))
    if opcodes:
        machine.load_rom(assemble(*opcodes), "test")
    return Chip8CPU(machine)


def run(cpu: Chip8CPU, opcode: int) -> Machine:
    """Execute one opcode directly, as if just fetched from PC"""
    cpu.machine.pc += 2
    cpu.execute(Instruction.from_opcode(opcode))
    return cpu.machine


@pytest.fixture
def cpu():
    return build_cpu()


@pytest.fixture
def machine(cpu):
    return cpu.machine


@pytest.fixture
def emulator():
    return Chip8Emulator(EmulatorConfig(seed=7))
