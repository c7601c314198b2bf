import pytest

from catchip8.decode import Instruction, fetch
from catchip8.errors import FetchFault
from catchip8.machine import Machine


def test_fields():
    ins = Instruction.from_opcode(0xD2A7)
    assert ins.family == 0xD
    assert ins.nnn == 0x2A7
    assert ins.nn == 0xA7
    assert ins.n == 0x7
    assert ins.x == 0x2
    assert ins.y == 0xA
    assert str(ins) == "D2A7"


def test_fetch_is_big_endian_and_advances_pc():
    m = Machine()
    m.load_rom(bytes([0x12, 0x34, 0x56, 0x78]))
    ins = fetch(m)
    assert ins.opcode == 0x1234
    assert m.pc == 0x202
    assert fetch(m).opcode == 0x5678
    assert m.pc == 0x204


def test_fetch_last_word_in_memory():
    m = Machine()
    m.memory[0xFFE:0x1000] = bytes([0xAB, 0xCD])
    m.pc = 0xFFE
    assert fetch(m).opcode == 0xABCD
    assert m.pc == 0x1000


@pytest.mark.parametrize("pc", [0xFFF, 0x1000, 0x1FFE])
def test_fetch_outside_memory_faults(pc):
    m = Machine()
    m.pc = pc
    with pytest.raises(FetchFault) as excinfo:
        fetch(m)
    assert excinfo.value.address == pc
    assert m.pc == pc
