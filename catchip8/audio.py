"""
Square-wave beeper on pygame.mixer.

The emulator only says whether the tone should be playing; frequency and
volume are decided here.
"""

import logging
from array import array

import pygame

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
VOLUME_STEP = 0.05


class Chip8Audio:
    """Plays a looping tone while the sound timer is running"""

    def __init__(self, frequency: int = 440, volume: float = 0.25):
        self.frequency = frequency
        self.volume = volume
        self.is_beeping = False
        self._sound = None
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        except pygame.error as e:
            logger.warning("Audio device unavailable, running silent: %s", e)
            return
        self._sound = pygame.mixer.Sound(buffer=self._square_wave())
        self._sound.set_volume(self.volume)

    def _square_wave(self) -> bytes:
        """One period-aligned second of 16-bit mono square wave"""
        period = max(2, SAMPLE_RATE // self.frequency)
        half = period // 2
        amplitude = 2 ** 15 - 1
        samples = array('h', ([amplitude] * half + [-amplitude] * (period - half)))
        return (samples * (SAMPLE_RATE // period)).tobytes()

    @property
    def available(self) -> bool:
        return self._sound is not None

    def start_beep(self):
        if not self.is_beeping:
            self.is_beeping = True
            if self._sound is not None:
                self._sound.play(loops=-1)

    def stop_beep(self):
        if self.is_beeping:
            self.is_beeping = False
            if self._sound is not None:
                self._sound.stop()

    def update(self, tone: bool):
        if tone and not self.is_beeping:
            self.start_beep()
        elif not tone and self.is_beeping:
            self.stop_beep()

    def change_volume(self, delta: float) -> float:
        self.volume = max(0.0, min(1.0, self.volume + delta))
        if self._sound is not None:
            self._sound.set_volume(self.volume)
        return self.volume

    def close(self):
        self.stop_beep()
        if self._sound is not None:
            pygame.mixer.quit()
            self._sound = None
