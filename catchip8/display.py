"""Tkinter canvas renderer for the CHIP-8 pixel buffer."""

import tkinter as tk

from .machine import Display

SCANLINE_TAG = "scanline"


class Chip8Display:
    """Tkinter canvas-based display renderer"""

    def __init__(self, canvas: tk.Canvas, fg_color: str, bg_color: str,
                 width: int = 64, height: int = 32):
        self.canvas = canvas
        self.fg_color = fg_color
        self.bg_color = bg_color
        self.scanlines = False

        self.width = width
        self.height = height

        self.canvas_width = int(canvas['width'])
        self.canvas_height = int(canvas['height'])

        # Pre-create pixel rectangles; only changed cells are reconfigured
        self.pixel_rects = {}
        self._shown = {}

        self._create_pixels()

    def _create_pixels(self):
        """Create pixel grid for current resolution"""
        self.canvas.delete("all")
        self.pixel_rects.clear()
        self._shown.clear()

        scale_x = self.canvas_width / self.width
        scale_y = self.canvas_height / self.height

        for y in range(self.height):
            for x in range(self.width):
                x1 = x * scale_x
                y1 = y * scale_y
                rect = self.canvas.create_rectangle(
                    x1, y1, x1 + scale_x, y1 + scale_y,
                    fill=self.bg_color,
                    outline=""
                )
                self.pixel_rects[(x, y)] = rect
                self._shown[(x, y)] = False

        if self.scanlines:
            self._draw_scanlines()

    def _draw_scanlines(self):
        """Darken the lower half of every CHIP-8 pixel row"""
        row_height = self.canvas_height / self.height
        for y in range(self.height):
            top = y * row_height + row_height / 2
            self.canvas.create_rectangle(
                0, top, self.canvas_width, (y + 1) * row_height,
                fill="#000000", stipple="gray50", outline="",
                tags=SCANLINE_TAG,
            )

    def set_resolution(self, width: int, height: int):
        if self.width != width or self.height != height:
            self.width = width
            self.height = height
            self._create_pixels()

    def toggle_scanlines(self) -> bool:
        self.scanlines = not self.scanlines
        if self.scanlines:
            self._draw_scanlines()
        else:
            self.canvas.delete(SCANLINE_TAG)
        return self.scanlines

    def render(self, display: Display):
        """Render a pixel buffer snapshot to the canvas"""
        self.set_resolution(len(display[0]), len(display))

        for y, row in enumerate(display):
            for x, pixel in enumerate(row):
                if self._shown[(x, y)] == pixel:
                    continue
                self._shown[(x, y)] = pixel
                self.canvas.itemconfig(
                    self.pixel_rects[(x, y)],
                    fill=self.fg_color if pixel else self.bg_color,
                )
