"""Styling module for the QuizTaker window."""

from .color_palette import ColorPalette, Theme

__all__ = ["ColorPalette", "Theme"]
