"""
CHIP-8 execute engine.

``Chip8CPU`` applies one decoded instruction at a time to a ``Machine``.
Dispatch goes through a table keyed by the opcode's first nibble, with
second-level tables for the families that need them. The quirk profile is
consulted once, when the tables are built: every quirk-dependent opcode gets
the handler variant for that profile, so the handlers themselves carry no
quirk branches.
"""

import logging
import operator
from functools import partial
from operator import attrgetter
from typing import Callable, Dict, List, Optional

from .config import Quirks
from .decode import Instruction, fetch
from .machine import NUM_RPL_FLAGS, KeyWait, Machine

logger = logging.getLogger(__name__)

Handler = Callable[[Instruction], None]


def _v0(ins: Instruction) -> int:
    return 0


class Chip8CPU:
    """
    CHIP-8 CPU core.

    Implements the 35 original CHIP-8 opcodes and, when the quirk profile
    enables them, the SUPER-CHIP 1.1 (``extended_opcodes``) and XO-CHIP
    (``xo_opcodes``) additions.
    Opcodes that match nothing are consumed as no-ops.
    """

    def __init__(self, machine: Machine, quirks: Optional[Quirks] = None):
        self.machine = machine
        self.quirks = quirks or machine.config.quirks
        self._table = self._build_table(self.quirks)

    # ==================== CYCLE ====================

    def step(self) -> Instruction:
        """Fetch, decode and execute one instruction."""
        ins = fetch(self.machine)
        self.execute(ins)
        self.machine.cycles += 1
        return ins

    def execute(self, ins: Instruction):
        """Apply one decoded instruction (PC already advanced past it)."""
        self._table[ins.family](ins)

    # ==================== DISPATCH TABLE ====================

    def _build_table(self, q: Quirks) -> Dict[int, Handler]:
        self._shift_source = attrgetter("y") if q.shift_uses_vy else attrgetter("x")
        self._jump_register = attrgetter("x") if q.jump_uses_vx else _v0
        logic = self._logic_vf_reset if q.vf_reset else self._logic

        self._table_0: Dict[int, Handler] = {
            0x00E0: self._cls,
            0x00EE: self._ret,
        }
        self._table_0_scroll: Dict[int, Handler] = {}
        self._table_5: Dict[int, Handler] = {0x0: self._skip_eq_reg}
        self._table_8: Dict[int, Handler] = {
            0x0: self._ld_reg,
            0x1: partial(logic, operator.or_),
            0x2: partial(logic, operator.and_),
            0x3: partial(logic, operator.xor),
            0x4: self._add_reg,
            0x5: self._sub,
            0x6: self._shr,
            0x7: self._subn,
            0xE: self._shl,
        }
        self._table_e: Dict[int, Handler] = {
            0x9E: self._skip_key,
            0xA1: self._skip_not_key,
        }
        self._table_f: Dict[int, Handler] = {
            0x07: self._ld_vx_dt,
            0x0A: self._wait_key,
            0x15: self._ld_dt_vx,
            0x18: self._ld_st_vx,
            0x1E: self._add_i,
            0x29: self._ld_font,
            0x33: self._bcd,
            0x55: partial(self._store_registers, q.memory_increment),
            0x65: partial(self._load_registers, q.memory_increment),
        }

        if q.extended_opcodes:
            self._table_0.update({
                0x00FB: self._scroll_right,
                0x00FC: self._scroll_left,
                0x00FD: self._exit,
                0x00FE: self._set_lores,
                0x00FF: self._set_hires,
            })
            self._table_0_scroll[0x00C0] = self._scroll_down
            self._table_f.update({
                0x30: self._ld_hires_font,
                0x75: self._save_rpl,
                0x85: self._load_rpl,
            })

        if q.xo_opcodes:
            self._table_0_scroll[0x00D0] = self._scroll_up
            self._table_5.update({0x2: self._save_range, 0x3: self._load_range})

        return {
            0x0: self._family_0,
            0x1: self._jp,
            0x2: self._call,
            0x3: self._skip_eq,
            0x4: self._skip_ne,
            0x5: lambda ins: self._table_5.get(ins.n, self._nop)(ins),
            0x6: self._ld,
            0x7: self._add,
            0x8: lambda ins: self._table_8.get(ins.n, self._nop)(ins),
            0x9: self._skip_ne_reg,
            0xA: self._ld_i,
            0xB: self._jp_offset,
            0xC: self._rnd,
            0xD: partial(self._draw, q.clip_sprites, q.extended_opcodes, q.xo_opcodes),
            0xE: lambda ins: self._table_e.get(ins.nn, self._nop)(ins),
            0xF: lambda ins: self._table_f.get(ins.nn, self._nop)(ins),
        }

    def _family_0(self, ins: Instruction):
        handler = self._table_0.get(ins.opcode)
        if handler is None:
            # 0NNN: SYS addr - 1802 machine code on the VIP, ignored here
            handler = self._table_0_scroll.get(ins.opcode & 0xFFF0, self._nop)
        handler(ins)

    def _nop(self, ins: Instruction):
        logger.debug("Ignoring unknown opcode %s at $%04X", ins, self.machine.pc - 2)

    # ==================== FLOW CONTROL ====================

    def _ret(self, ins: Instruction):
        # 00EE: RET - Return from subroutine
        self.machine.pc = self.machine.pop()

    def _jp(self, ins: Instruction):
        # 1NNN: JP addr
        self.machine.pc = ins.nnn

    def _call(self, ins: Instruction):
        # 2NNN: CALL addr - return address is the already-advanced PC
        m = self.machine
        m.push(m.pc)
        m.pc = ins.nnn

    def _jp_offset(self, ins: Instruction):
        # BNNN: JP V0, addr (BXNN adds Vx under the CHIP-48 quirk)
        m = self.machine
        m.pc = ins.nnn + m.v[self._jump_register(ins)]

    def _skip_eq(self, ins: Instruction):
        # 3XNN: SE Vx, byte
        if self.machine.v[ins.x] == ins.nn:
            self.machine.pc += 2

    def _skip_ne(self, ins: Instruction):
        # 4XNN: SNE Vx, byte
        if self.machine.v[ins.x] != ins.nn:
            self.machine.pc += 2

    def _skip_eq_reg(self, ins: Instruction):
        # 5XY0: SE Vx, Vy
        v = self.machine.v
        if v[ins.x] == v[ins.y]:
            self.machine.pc += 2

    def _skip_ne_reg(self, ins: Instruction):
        # 9XY0: SNE Vx, Vy (other low nibbles are no-ops)
        if ins.n != 0:
            self._nop(ins)
            return
        v = self.machine.v
        if v[ins.x] != v[ins.y]:
            self.machine.pc += 2

    def _skip_key(self, ins: Instruction):
        # EX9E: SKP Vx
        m = self.machine
        if m.keys[m.v[ins.x] & 0x0F]:
            m.pc += 2

    def _skip_not_key(self, ins: Instruction):
        # EXA1: SKNP Vx
        m = self.machine
        if not m.keys[m.v[ins.x] & 0x0F]:
            m.pc += 2

    def _wait_key(self, ins: Instruction):
        """
        FX0A: LD Vx, K - wait for a key to be pressed and released.

        While waiting the PC is wound back so the same instruction runs
        again next cycle; the progress lives in ``machine.key_wait``.
        """
        m = self.machine
        if m.key_wait is KeyWait.IDLE:
            m.key_wait = KeyWait.AWAITING_PRESS

        if m.key_wait is KeyWait.AWAITING_PRESS:
            pressed = next((k for k, down in enumerate(m.keys) if down), None)
            if pressed is not None:
                m.key_wait_key = pressed
                m.key_wait = KeyWait.AWAITING_RELEASE
            m.pc -= 2
            return

        if m.keys[m.key_wait_key]:
            m.pc -= 2
            return

        m.v[ins.x] = m.key_wait_key
        m.key_wait = KeyWait.IDLE
        m.key_wait_key = None

    def _exit(self, ins: Instruction):
        # 00FD: EXIT (SUPER-CHIP)
        self.machine.exit_requested = True
        self.machine.pc -= 2

    # ==================== REGISTERS ====================

    def _ld(self, ins: Instruction):
        # 6XNN: LD Vx, byte
        self.machine.v[ins.x] = ins.nn

    def _add(self, ins: Instruction):
        # 7XNN: ADD Vx, byte - no carry flag
        v = self.machine.v
        v[ins.x] = (v[ins.x] + ins.nn) & 0xFF

    def _ld_reg(self, ins: Instruction):
        # 8XY0: LD Vx, Vy
        v = self.machine.v
        v[ins.x] = v[ins.y]

    def _logic(self, op: Callable[[int, int], int], ins: Instruction):
        # 8XY1/8XY2/8XY3: OR/AND/XOR Vx, Vy
        v = self.machine.v
        v[ins.x] = op(v[ins.x], v[ins.y])

    def _logic_vf_reset(self, op: Callable[[int, int], int], ins: Instruction):
        self._logic(op, ins)
        self.machine.v[0xF] = 0

    def _add_reg(self, ins: Instruction):
        # 8XY4: ADD Vx, Vy - VF = carry
        v = self.machine.v
        result = v[ins.x] + v[ins.y]
        v[ins.x] = result & 0xFF
        v[0xF] = 1 if result > 0xFF else 0

    def _sub(self, ins: Instruction):
        # 8XY5: SUB Vx, Vy - VF = NOT borrow
        v = self.machine.v
        vx, vy = v[ins.x], v[ins.y]
        v[ins.x] = (vx - vy) & 0xFF
        v[0xF] = 1 if vx >= vy else 0

    def _subn(self, ins: Instruction):
        # 8XY7: SUBN Vx, Vy - VF = NOT borrow
        v = self.machine.v
        vx, vy = v[ins.x], v[ins.y]
        v[ins.x] = (vy - vx) & 0xFF
        v[0xF] = 1 if vy >= vx else 0

    def _shr(self, ins: Instruction):
        # 8XY6: SHR Vx {, Vy} - VF = bit shifted out
        v = self.machine.v
        src = v[self._shift_source(ins)]
        v[ins.x] = src >> 1
        v[0xF] = src & 0x01

    def _shl(self, ins: Instruction):
        # 8XYE: SHL Vx {, Vy} - VF = bit shifted out
        v = self.machine.v
        src = v[self._shift_source(ins)]
        v[ins.x] = (src << 1) & 0xFF
        v[0xF] = (src >> 7) & 0x01

    def _rnd(self, ins: Instruction):
        # CXNN: RND Vx, byte
        m = self.machine
        m.v[ins.x] = m.rng.randint(0, 255) & ins.nn

    # ==================== TIMERS ====================

    def _ld_vx_dt(self, ins: Instruction):
        # FX07
        self.machine.v[ins.x] = self.machine.delay_timer

    def _ld_dt_vx(self, ins: Instruction):
        # FX15
        self.machine.delay_timer = self.machine.v[ins.x]

    def _ld_st_vx(self, ins: Instruction):
        # FX18
        self.machine.sound_timer = self.machine.v[ins.x]

    # ==================== INDEX / MEMORY ====================

    def _ld_i(self, ins: Instruction):
        # ANNN: LD I, addr
        self.machine.i = ins.nnn

    def _add_i(self, ins: Instruction):
        # FX1E: ADD I, Vx
        m = self.machine
        m.i = (m.i + m.v[ins.x]) & 0xFFFF

    def _ld_font(self, ins: Instruction):
        # FX29: LD F, Vx - glyphs are 5 bytes apart
        m = self.machine
        m.i = m.config.font_start + m.v[ins.x] * 5

    def _ld_hires_font(self, ins: Instruction):
        # FX30: LD HF, Vx (SUPER-CHIP) - glyphs are 10 bytes apart
        m = self.machine
        m.i = m.config.hires_font_start + (m.v[ins.x] & 0x0F) * 10

    def _bcd(self, ins: Instruction):
        # FX33: LD B, Vx
        m = self.machine
        value = m.v[ins.x]
        m.write(m.i, value // 100)
        m.write(m.i + 1, (value // 10) % 10)
        m.write(m.i + 2, value % 10)

    def _store_registers(self, increment: bool, ins: Instruction):
        # FX55: LD [I], Vx
        m = self.machine
        for idx in range(ins.x + 1):
            m.write(m.i + idx, m.v[idx])
        if increment:
            m.i = (m.i + ins.x + 1) & 0xFFFF

    def _load_registers(self, increment: bool, ins: Instruction):
        # FX65: LD Vx, [I]
        m = self.machine
        for idx in range(ins.x + 1):
            m.v[idx] = m.read(m.i + idx)
        if increment:
            m.i = (m.i + ins.x + 1) & 0xFFFF

    def _register_range(self, ins: Instruction) -> List[int]:
        step = 1 if ins.x <= ins.y else -1
        return list(range(ins.x, ins.y + step, step))

    def _save_range(self, ins: Instruction):
        # 5XY2: SAVE Vx - Vy (XO-CHIP), I unchanged
        m = self.machine
        for offset, reg in enumerate(self._register_range(ins)):
            m.write(m.i + offset, m.v[reg])

    def _load_range(self, ins: Instruction):
        # 5XY3: LOAD Vx - Vy (XO-CHIP), I unchanged
        m = self.machine
        for offset, reg in enumerate(self._register_range(ins)):
            m.v[reg] = m.read(m.i + offset)

    def _save_rpl(self, ins: Instruction):
        # FX75: LD R, Vx (SUPER-CHIP)
        m = self.machine
        for idx in range(min(ins.x + 1, NUM_RPL_FLAGS)):
            m.rpl_flags[idx] = m.v[idx]

    def _load_rpl(self, ins: Instruction):
        # FX85: LD Vx, R (SUPER-CHIP)
        m = self.machine
        for idx in range(min(ins.x + 1, NUM_RPL_FLAGS)):
            m.v[idx] = m.rpl_flags[idx]

    # ==================== DISPLAY OPERATIONS ====================

    def _cls(self, ins: Instruction):
        # 00E0: CLS
        self.machine.clear_display()

    def _draw(self, clip: bool, extended: bool, xo: bool, ins: Instruction):
        """
        DXYN: Draw sprite at (Vx, Vy) with height N

        Sprites are XORed onto the display.
        VF is set to 1 if any pixel is erased (collision).

        DXY0 draws a 16x16 sprite: in high-res only on SUPER-CHIP, in
        either resolution on XO-CHIP. Otherwise it draws nothing.
        """
        m = self.machine
        vx = m.v[ins.x] % m.display_width
        vy = m.v[ins.y] % m.display_height

        if ins.n == 0 and (xo or (extended and m.hires_mode)):
            rows = [(m.read(m.i + r * 2) << 8) | m.read(m.i + r * 2 + 1) for r in range(16)]
            width = 16
        else:
            rows = [m.read(m.i + r) for r in range(ins.n)]
            width = 8

        m.v[0xF] = 1 if self._blit(vx, vy, rows, width, clip) else 0
        m.draw_flag = True

    def _blit(self, vx: int, vy: int, rows: List[int], width: int, clip: bool) -> bool:
        m = self.machine
        collision = False
        top_bit = 1 << (width - 1)
        for row, bits in enumerate(rows):
            py = vy + row
            if py >= m.display_height:
                if clip:
                    break
                py %= m.display_height
            line = m.display[py]

            for col in range(width):
                if not bits & (top_bit >> col):
                    continue
                px = vx + col
                if px >= m.display_width:
                    if clip:
                        break
                    px %= m.display_width
                if line[px]:
                    collision = True
                line[px] = not line[px]
        return collision

    # ==================== SUPER-CHIP SCROLLING ====================

    def _scroll_down(self, ins: Instruction):
        # 00CN: SCD N
        m = self.machine
        n = min(ins.n, m.display_height)
        if n:
            blank = [[False] * m.display_width for _ in range(n)]
            m.display[:] = blank + m.display[:-n]
            m.draw_flag = True

    def _scroll_up(self, ins: Instruction):
        # 00DN: SCU N (XO-CHIP)
        m = self.machine
        n = min(ins.n, m.display_height)
        if n:
            blank = [[False] * m.display_width for _ in range(n)]
            m.display[:] = m.display[n:] + blank
            m.draw_flag = True

    def _scroll_right(self, ins: Instruction):
        # 00FB: SCR - 4 pixels
        m = self.machine
        for y, row in enumerate(m.display):
            m.display[y] = [False] * 4 + row[:-4]
        m.draw_flag = True

    def _scroll_left(self, ins: Instruction):
        # 00FC: SCL - 4 pixels
        m = self.machine
        for y, row in enumerate(m.display):
            m.display[y] = row[4:] + [False] * 4
        m.draw_flag = True

    def _set_lores(self, ins: Instruction):
        # 00FE: LOW
        self.machine.set_resolution(False)

    def _set_hires(self, ins: Instruction):
        # 00FF: HIGH
        self.machine.set_resolution(True)
