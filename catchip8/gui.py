"""
Tkinter front end.

Everything runs on the Tk thread: each scheduled frame polls the gamepad,
runs one emulator frame, renders if needed, updates the beeper and then
schedules itself again after the idle time the emulator asks for.
"""

import logging
import os
import time
import tkinter as tk
from tkinter import filedialog, messagebox
from typing import Optional

from .audio import VOLUME_STEP, Chip8Audio
from .config import EmulatorConfig
from .controller import Chip8Controller
from .display import Chip8Display
from .emulator import Chip8Emulator, EmulatorState
from .errors import Chip8Error
from .keymap import Hotkey, hotkey, keypad_key

logger = logging.getLogger(__name__)

STATUS_BAR_HEIGHT = 48

COLORS = {
    'bg': '#0C0C0C',
    'status_bg': '#1E1E1E',
    'status_fg': '#707070',
    'accent': '#4A9EFF',
}

STATE_TEXT = {
    EmulatorState.STOPPED: "⏹ Stopped",
    EmulatorState.RUNNING: "▶ Running",
    EmulatorState.PAUSED: "⏸ Paused",
    EmulatorState.QUIT: "⏹ Exited",
    EmulatorState.FAULTED: "⚠ Faulted",
}


class Chip8GUI:
    """Main emulator application with Tkinter GUI"""

    def __init__(self, config: EmulatorConfig):
        self.config = config
        self.emulator = Chip8Emulator(config)
        self.audio = Chip8Audio(config.tone_frequency, config.volume)
        self.controller = Chip8Controller(self.emulator.set_key)
        self.controller.on_pause_toggle = self._toggle_pause

        display_width = config.lores_width * config.scale_factor
        display_height = config.lores_height * config.scale_factor

        self.root = tk.Tk()
        self.root.title("Cat's Chip-8 Emulator")
        self.root.geometry(f"{display_width}x{display_height + STATUS_BAR_HEIGHT}")
        self.root.resizable(False, False)
        self.root.configure(bg=COLORS['bg'])

        self.fps = 0
        self.frame_count = 0
        self.last_fps_time = time.time()
        self._frame_job: Optional[str] = None

        self._create_ui(display_width, display_height)
        self.display_renderer = Chip8Display(
            self.canvas, config.fg_color, config.bg_color,
            config.lores_width, config.lores_height,
        )
        self._bind_keys()
        self._update_status()

        self._actions = {
            Hotkey.QUIT: self._on_close,
            Hotkey.PAUSE: self._toggle_pause,
            Hotkey.RESET: self._reset,
            Hotkey.SLOWER: self._decrease_speed,
            Hotkey.FASTER: self._increase_speed,
            Hotkey.VOLUME_DOWN: lambda: self._change_volume(-VOLUME_STEP),
            Hotkey.VOLUME_UP: lambda: self._change_volume(VOLUME_STEP),
            Hotkey.DEBUG: self._print_debug,
            Hotkey.SCANLINES: self.display_renderer.toggle_scanlines,
        }

    def _create_ui(self, width: int, height: int):
        self.canvas = tk.Canvas(
            self.root,
            width=width,
            height=height,
            bg=COLORS['bg'],
            highlightthickness=0
        )
        self.canvas.pack(side=tk.TOP)
        self.canvas.bind("<Button-1>", self._on_click)

        self.status_frame = tk.Frame(self.root, height=STATUS_BAR_HEIGHT, bg=COLORS['status_bg'])
        self.status_frame.pack(side=tk.BOTTOM, fill=tk.X)
        self.status_frame.pack_propagate(False)

        def label(text, side, fg=COLORS['status_fg'], bold=False):
            font = ("Consolas", 9, "bold") if bold else ("Consolas", 9)
            widget = tk.Label(self.status_frame, text=text, fg=fg, bg=COLORS['status_bg'], font=font)
            widget.pack(side=side, padx=10)
            return widget

        self.rom_label = label("No ROM - Click to load", tk.LEFT)
        self.fps_label = label("FPS: --", tk.LEFT)
        self.state_label = label(STATE_TEXT[EmulatorState.STOPPED], tk.RIGHT)
        self.speed_label = label("1×", tk.RIGHT, fg=COLORS['accent'], bold=True)
        self.mode_label = label("64×32", tk.RIGHT)
        self.audio_label = label("", tk.RIGHT)

    def _bind_keys(self):
        self.root.bind("<KeyPress>", self._on_key_down)
        self.root.bind("<KeyRelease>", self._on_key_up)
        self.root.bind("<FocusOut>", lambda e: self.emulator.release_keys())
        self.root.bind("<Control-o>", lambda e: self._open_file_dialog())
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    # ==================== INPUT ====================

    def _on_key_down(self, event):
        control = bool(event.state & 0x4)
        action = hotkey(event.keysym, control)
        if action is not None:
            self._actions[action]()
            return
        key = keypad_key(event.keysym)
        if key is not None:
            self.emulator.set_key(key, True)

    def _on_key_up(self, event):
        key = keypad_key(event.keysym)
        if key is not None:
            self.emulator.set_key(key, False)

    def _on_click(self, event):
        if self.emulator.state is EmulatorState.STOPPED:
            self._open_file_dialog()

    # ==================== ROM ====================

    def _open_file_dialog(self):
        filepath = filedialog.askopenfilename(
            title="Select CHIP-8 ROM",
            filetypes=[
                ("CHIP-8 ROM", "*.ch8"),
                ("CHIP-8 ROM", "*.c8"),
                ("SUPER-CHIP ROM", "*.sc8"),
                ("All files", "*.*")
            ]
        )
        if filepath:
            self.load_rom(filepath)

    def load_rom(self, filepath: str):
        try:
            self.emulator.load_rom_file(filepath)
        except Chip8Error as e:
            logger.error("%s", e)
            messagebox.showerror("Error", f"Failed to load ROM:\n{e}")
            return
        name = os.path.basename(filepath)
        self.rom_label.config(text=f"ROM: {name} ({self.emulator.machine.rom_size}b)")
        self._update_status()
        self._start_frames()

    # ==================== FRAME LOOP ====================

    def _start_frames(self):
        if self._frame_job is None:
            self._frame_job = self.root.after(0, self._frame)

    def _frame(self):
        self.controller.poll()
        result = self.emulator.run_frame()

        snapshot = self.emulator.consume_redraw()
        if snapshot is not None:
            self.display_renderer.render(snapshot)
            self.mode_label.config(text=f"{len(snapshot[0])}×{len(snapshot)}")

        self.audio.update(result.tone)
        self._count_frame()

        if result.state is EmulatorState.QUIT:
            self._on_close()
            return
        if result.state is EmulatorState.FAULTED:
            self._update_status()
            self._frame_job = None
            messagebox.showerror("Machine fault", str(self.emulator.fault))
            return

        self._frame_job = self.root.after(int(result.idle * 1000), self._frame)

    def _count_frame(self):
        self.frame_count += 1
        now = time.time()
        if now - self.last_fps_time >= 1.0:
            self.fps = self.frame_count
            self.frame_count = 0
            self.last_fps_time = now
            self.fps_label.config(text=f"FPS: {self.fps}")

    # ==================== CONTROLS ====================

    def _update_status(self):
        self.state_label.config(text=STATE_TEXT[self.emulator.state])
        self.speed_label.config(text=f"{self.emulator.timers.speed_multiplier}×")
        if self.audio.available:
            self.audio_label.config(text=f"Vol {round(self.audio.volume * 100)}%")
        else:
            self.audio_label.config(text="No audio")

    def _reset(self):
        self.emulator.reset()
        self._update_status()
        self._start_frames()

    def _toggle_pause(self):
        self.emulator.toggle_pause()
        self._update_status()

    def _increase_speed(self):
        self.emulator.faster()
        self._update_status()

    def _decrease_speed(self):
        self.emulator.slower()
        self._update_status()

    def _change_volume(self, delta: float):
        self.audio.change_volume(delta)
        self._update_status()

    def _print_debug(self):
        print("\n=== DEBUG INFO ===")
        print(self.emulator.machine.dump())
        print(f"State: {self.emulator.state.name}")
        print("==================\n")

    def run(self):
        self.root.mainloop()

    def _on_close(self):
        self.emulator.quit()
        if self._frame_job is not None:
            self.root.after_cancel(self._frame_job)
            self._frame_job = None
        self.audio.close()
        self.controller.stop()
        self.root.destroy()
