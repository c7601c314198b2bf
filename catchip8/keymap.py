"""
Keyboard to keypad mapping and emulator hotkeys.

Each hotkey triggers exactly one action.
"""

from enum import Enum, auto
from typing import Optional

# CHIP-8 Hex Keypad    PC Keyboard
#  1 2 3 C             1 2 3 4
#  4 5 6 D      →      Q W E R
#  7 8 9 E             A S D F
#  A 0 B F             Z X C V

KEYBOARD_MAP = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}


class Hotkey(Enum):
    QUIT = auto()
    PAUSE = auto()
    RESET = auto()
    SLOWER = auto()
    FASTER = auto()
    VOLUME_DOWN = auto()
    VOLUME_UP = auto()
    DEBUG = auto()
    SCANLINES = auto()


# Tk keysyms
HOTKEYS = {
    'escape': Hotkey.QUIT,
    'space': Hotkey.PAUSE,
    'f9': Hotkey.RESET,
    'f1': Hotkey.SLOWER,
    'f2': Hotkey.FASTER,
    'minus': Hotkey.VOLUME_DOWN,
    'equal': Hotkey.VOLUME_UP,
    'f3': Hotkey.SCANLINES,
    'f4': Hotkey.DEBUG,
}

CONTROL_HOTKEYS = {
    'r': Hotkey.RESET,
}


def keypad_key(keysym: str) -> Optional[int]:
    """CHIP-8 key for a keysym, or None"""
    return KEYBOARD_MAP.get(keysym.lower())


def hotkey(keysym: str, control: bool = False) -> Optional[Hotkey]:
    """Hotkey bound to a keysym, or None. Control combinations win over keypad keys."""
    keysym = keysym.lower()
    if control:
        return CONTROL_HOTKEYS.get(keysym)
    return HOTKEYS.get(keysym)
