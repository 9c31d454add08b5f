"""Translate raw widget callbacks into sync engine commands."""

from __future__ import annotations

import logging
from typing import Any, Callable

from gammapplet.units import Parameter, parse_parameter

logger = logging.getLogger(__name__)

Dispatch = Callable[[str, Any], None]


class InputAdapter:
    """Entry point for UI events.

    Widgets report by name ("temperature", "brightness", "gamma") with a
    slider position, or a checkbutton state for invert. Events are validated,
    clamped to [0, 1] and handed to ``dispatch`` - normally
    ``SyncWorker.post``, or ``SyncEngine.handle`` when driven synchronously.
    """

    def __init__(self, dispatch: Dispatch) -> None:
        self._dispatch = dispatch

    def on_slider_changed(self, name: str, value: float) -> None:
        parameter = parse_parameter(name)
        if parameter is None or parameter is Parameter.INVERT:
            logger.warning("input: ignoring change for unknown slider %r", name)
            return
        value = min(1.0, max(0.0, float(value)))
        self._dispatch("set", (parameter, value))

    def on_invert_changed(self, on: bool) -> None:
        self._dispatch("invert", bool(on))

    def on_slider_default(self, name: str) -> None:
        """Request a reset; unknown names are left for the engine to reject."""
        self._dispatch("reset", name)
