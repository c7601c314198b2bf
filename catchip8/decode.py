"""Opcode fetch and field extraction."""

from dataclasses import dataclass

from .errors import FetchFault
from .machine import Machine


@dataclass(frozen=True)
class Instruction:
    """Fields of one 16-bit opcode"""
    opcode: int
    nnn: int    # 12-bit address
    nn: int     # 8-bit constant
    n: int      # 4-bit constant
    x: int      # Register X index
    y: int      # Register Y index

    @property
    def family(self) -> int:
        """First nibble, selects the instruction class"""
        return self.opcode >> 12

    @classmethod
    def from_opcode(cls, opcode: int) -> "Instruction":
        return cls(
            opcode=opcode,
            nnn=opcode & 0x0FFF,
            nn=opcode & 0x00FF,
            n=opcode & 0x000F,
            x=(opcode >> 8) & 0x0F,
            y=(opcode >> 4) & 0x0F,
        )

    def __str__(self):
        return f"{self.opcode:04X}"


def fetch(machine: Machine) -> Instruction:
    """
    Read the big-endian opcode at PC and advance PC by 2.

    Raises FetchFault if either byte lies outside memory; PC is left
    untouched in that case.
    """
    pc = machine.pc
    if pc < 0 or pc + 1 >= len(machine.memory):
        raise FetchFault("program counter outside memory", pc)
    opcode = (machine.memory[pc] << 8) | machine.memory[pc + 1]
    machine.pc = pc + 2
    return Instruction.from_opcode(opcode)
