"""
Gamepad input via pygame joysticks.

Polled once per frame from the front end's loop; button and D-pad changes
are reported as keypad writes through ``on_key_change``.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

import pygame

logger = logging.getLogger(__name__)


class Chip8Controller:
    """Controller input handler"""

    # Controller button mappings for PS/Xbox style pads
    BUTTON_SQUARE = 0
    BUTTON_CIRCLE = 1
    BUTTON_CROSS = 2
    BUTTON_TRIANGLE = 3
    BUTTON_L1 = 4
    BUTTON_R1 = 5
    BUTTON_OPTIONS = 9

    BUTTON_TO_KEY: Dict[int, int] = {
        BUTTON_CROSS: 0x5,
        BUTTON_CIRCLE: 0x6,
        BUTTON_SQUARE: 0x4,
        BUTTON_TRIANGLE: 0x1,
        BUTTON_L1: 0xA,
        BUTTON_R1: 0xB,
    }

    # D-Pad (as hat) -> 2/4/6/8
    HAT_TO_KEY: Dict[Tuple[int, int], int] = {
        (0, 1): 0x2,
        (0, -1): 0x8,
        (-1, 0): 0x4,
        (1, 0): 0x6,
    }

    def __init__(self, on_key_change: Callable[[int, bool], None]):
        self.on_key_change = on_key_change
        self.on_pause_toggle: Optional[Callable[[], None]] = None
        self.joystick = None
        self.connected = False
        self.enabled = True
        self._buttons: Dict[int, bool] = {}
        self._hat_key: Optional[int] = None
        self._options_down = False

        try:
            pygame.init()
            pygame.joystick.init()
        except pygame.error as e:
            logger.warning("Controller support disabled: %s", e)
            self.enabled = False

    def poll(self):
        """Check connection and forward any state changes"""
        if not self.enabled:
            return
        try:
            pygame.event.pump()
            self._check_connection()
            if self.connected:
                self._process_input()
        except pygame.error as e:
            logger.warning("Controller polling failed, disabling: %s", e)
            self.enabled = False

    def _check_connection(self):
        count = pygame.joystick.get_count()
        if count > 0 and not self.connected:
            self.joystick = pygame.joystick.Joystick(0)
            self.joystick.init()
            self.connected = True
            logger.info("Controller connected: %s", self.joystick.get_name())
        elif count == 0 and self.connected:
            self._release_all()
            self.connected = False
            self.joystick = None
            logger.info("Controller disconnected")

    def _process_input(self):
        for button, key in self.BUTTON_TO_KEY.items():
            if button >= self.joystick.get_numbuttons():
                continue
            down = bool(self.joystick.get_button(button))
            if down != self._buttons.get(button, False):
                self._buttons[button] = down
                self.on_key_change(key, down)

        if self.BUTTON_OPTIONS < self.joystick.get_numbuttons():
            options = bool(self.joystick.get_button(self.BUTTON_OPTIONS))
            if options and not self._options_down and self.on_pause_toggle:
                self.on_pause_toggle()
            self._options_down = options

        if self.joystick.get_numhats() > 0:
            self._handle_hat(self.joystick.get_hat(0))

    def _handle_hat(self, value: Tuple[int, int]):
        key = self.HAT_TO_KEY.get(value)
        if key == self._hat_key:
            return
        if self._hat_key is not None:
            self.on_key_change(self._hat_key, False)
        if key is not None:
            self.on_key_change(key, True)
        self._hat_key = key

    def _release_all(self):
        for button, down in self._buttons.items():
            if down:
                self.on_key_change(self.BUTTON_TO_KEY[button], False)
        self._buttons.clear()
        self._handle_hat((0, 0))

    def stop(self):
        if self.enabled:
            pygame.joystick.quit()
