"""GUI tests for gammapplet.

These tests drive AppletWindow's queue and fade logic with a mocked Tk root,
so no display is needed. They still import tkinter and are skipped where it
is not installed.

Run only these with: pytest tests/gui/ -v
"""
