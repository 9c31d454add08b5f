"""Popup applet window for gammapplet.

Shows an invert switch and three vertical sliders (temperature, brightness,
gamma) plus the value text of the control last changed, above a small caret
pointing down at the launcher:
- Slider drags and switch toggles go to the InputAdapter
- Double-click or right-click on a slider resets it to its default
- The window fades in on start and fades out and closes when the pointer
  leaves (unless never_fade is set)

Thread Safety:
    Tkinter runs on the main thread. Other threads talk to the window only
    through show_value(), set_slider() and fail(), which enqueue commands
    that the Tk loop polls with after().
"""

from __future__ import annotations

import logging
import queue
import tkinter as tk
from tkinter import ttk
from typing import TYPE_CHECKING, Any

from gammapplet.units import CONTINUOUS_PARAMETERS, UNITS, Parameter

if TYPE_CHECKING:
    from gammapplet.config import WindowConfig
    from gammapplet.input_adapter import InputAdapter
    from gammapplet.relay import RelaySnapshot

logger = logging.getLogger(__name__)

LABELS = {
    Parameter.INVERT: "Inv",
    Parameter.TEMPERATURE: "Temp",
    Parameter.BRIGHTNESS: "Bri",
    Parameter.GAMMA: "Gam",
}

POLL_INTERVAL_MS = 16
CARET_SIZE = 8
BACKGROUND = "#202020"
FOREGROUND = "#E0E0E0"


def visible_parameters(config: WindowConfig) -> list[Parameter]:
    """Controls to show, in layout order."""
    return [parameter for parameter in Parameter if config[f"show_{parameter.value}"]]


def initial_value_text(config: WindowConfig, snapshot: RelaySnapshot) -> str | None:
    """Value text to show before any input.

    Uses the first visible slider among temperature, brightness and gamma.

    Returns:
        The formatted relay value, or None when no slider is visible or
        value text is disabled.
    """
    if not config["show_value"]:
        return None
    for parameter in CONTINUOUS_PARAMETERS:
        if config[f"show_{parameter.value}"]:
            return UNITS[parameter].format(getattr(snapshot, parameter.value))
    return None


def caret_points(width: int, size: int = CARET_SIZE) -> list[int]:
    """Corners of the downward caret centered in a strip of the given width.

    Returns:
        Flat x, y list for Canvas.create_polygon.
    """
    center = width // 2
    return [center - size, 0, center + size, 0, center, size]


def fade_step(opacity: float, direction: int, fade_ms: int, frame_ms: int) -> float:
    """Advance opacity by one frame of a linear fade.

    Args:
        opacity: Current opacity.
        direction: +1 to fade in, -1 to fade out, 0 to hold.
        fade_ms: Duration of a full fade; 0 jumps immediately.
        frame_ms: Time covered by one step.

    Returns:
        New opacity. Capped at 1.0 but may go below 0.0, which signals the
        end of a fade out.
    """
    if direction == 0:
        return opacity
    step = 1.0 if fade_ms <= 0 else frame_ms / fade_ms
    return min(1.0, opacity + direction * step)


class AppletWindow:
    """The slider popup.

    Usage:
        window = AppletWindow(config["window"], adapter, snapshot)
        window.run()  # blocks until the window closes
    """

    def __init__(
        self,
        config: WindowConfig,
        adapter: InputAdapter,
        snapshot: RelaySnapshot,
    ) -> None:
        """Initialize the window state (no Tk objects are created yet).

        Args:
            config: Window configuration section.
            adapter: Receives every input event.
            snapshot: Relay state at startup, used for initial slider positions.
        """
        self._config = config
        self._adapter = adapter
        self._snapshot = snapshot
        self._command_queue: queue.Queue[tuple[str, Any]] = queue.Queue()
        self._root: tk.Tk | None = None
        self._value_label: tk.Label | None = None
        self._invert_var: tk.BooleanVar | None = None
        self._slider_vars: dict[Parameter, tk.DoubleVar] = {}
        self._opacity = 0.0
        self._fade_direction = 1
        self.error: BaseException | None = None

    # Thread-safe API

    def show_value(self, parameter: Parameter, text: str) -> None:
        self._command_queue.put(("value", text))

    def set_slider(self, parameter: Parameter, value: float) -> None:
        self._command_queue.put(("slider", (parameter, value)))

    def fail(self, error: BaseException) -> None:
        """Close the window because the sync worker died."""
        self._command_queue.put(("fatal", error))

    def close(self) -> None:
        self._command_queue.put(("quit", None))

    # Tk side

    def run(self) -> None:
        """Build the window and run the Tk main loop."""
        self._root = tk.Tk()
        self._setup_window()
        self._create_widgets()
        self._root.bind("<Enter>", self._on_enter)
        self._root.bind("<Leave>", self._on_leave)
        self._schedule_processing()
        logger.debug("applet: window shown")
        self._root.mainloop()

    def _setup_window(self) -> None:
        root = self._root
        root.title("gammapplet")
        root.overrideredirect(True)
        root.attributes("-topmost", True)
        root.attributes("-alpha", self._opacity)
        root.configure(bg=BACKGROUND, padx=self._config["outer_padding"], pady=self._config["outer_padding"])

        width = self._config["width"]
        height = self._config["height"]
        pointer_x, pointer_y = root.winfo_pointerxy()
        x = max(0, pointer_x - width // 2)
        y = max(0, pointer_y - height)
        root.geometry(f"{width}x{height}+{x}+{y}")

    def _create_widgets(self) -> None:
        root = self._root
        text = initial_value_text(self._config, self._snapshot)
        if text is not None:
            self._value_label = tk.Label(root, text=text, bg=BACKGROUND, fg=FOREGROUND)
            self._value_label.pack(side=tk.TOP, fill=tk.X)

        if self._config["show_caret"]:
            self._create_caret(root)

        row = tk.Frame(root, bg=BACKGROUND)
        row.pack(side=tk.TOP, fill=tk.BOTH, expand=True)

        for parameter in visible_parameters(self._config):
            column = tk.Frame(row, bg=BACKGROUND)
            column.pack(side=tk.LEFT, fill=tk.Y, expand=True)
            if parameter is Parameter.INVERT:
                self._create_invert(column)
            else:
                self._create_slider(column, parameter)
            if self._config["show_labels"]:
                tk.Label(column, text=LABELS[parameter], bg=BACKGROUND, fg=FOREGROUND).pack(side=tk.BOTTOM)

    def _create_caret(self, parent: tk.Tk) -> None:
        width = max(0, self._config["width"] - 2 * self._config["outer_padding"])
        canvas = tk.Canvas(parent, width=width, height=CARET_SIZE, bg=BACKGROUND, highlightthickness=0)
        canvas.create_polygon(*caret_points(width), fill=FOREGROUND, outline="")
        # Packed before the controls so it keeps its strip at the bottom
        canvas.pack(side=tk.BOTTOM)

    def _create_invert(self, parent: tk.Frame) -> None:
        self._invert_var = tk.BooleanVar(value=self._snapshot.inverted)
        tk.Checkbutton(
            parent,
            variable=self._invert_var,
            command=self._on_invert,
            bg=BACKGROUND,
            activebackground=BACKGROUND,
        ).pack(side=tk.BOTTOM)

    def _create_slider(self, parent: tk.Frame, parameter: Parameter) -> None:
        start = UNITS[parameter].to_ui(getattr(self._snapshot, parameter.value))
        var = tk.DoubleVar(value=start)
        self._slider_vars[parameter] = var
        scale = ttk.Scale(
            parent,
            orient=tk.VERTICAL,
            from_=1.0,
            to=0.0,
            variable=var,
            command=lambda value, p=parameter: self._adapter.on_slider_changed(p.value, float(value)),
        )
        scale.pack(side=tk.TOP, fill=tk.Y, expand=True)

        def reset(_event: tk.Event, p: Parameter = parameter) -> None:
            self._adapter.on_slider_default(p.value)

        scale.bind("<Double-Button-1>", reset)
        scale.bind("<Button-3>", reset)

    def _on_invert(self) -> None:
        self._adapter.on_invert_changed(self._invert_var.get())

    def _on_enter(self, event: tk.Event) -> None:
        self._fade_direction = 1

    def _on_leave(self, event: tk.Event) -> None:
        # <Leave> also fires when moving onto a child widget
        if event.widget is not self._root or self._config["never_fade"]:
            return
        x, y = self._root.winfo_pointerxy()
        if self._root.winfo_containing(x, y) is None:
            self._fade_direction = -1

    def _schedule_processing(self) -> None:
        if self._root is None:
            return
        self._process_queue()
        if self._root is None:
            return
        self._update_fade()
        if self._root is not None:
            self._root.after(POLL_INTERVAL_MS, self._schedule_processing)

    def _process_queue(self) -> None:
        """Process commands from other threads."""
        try:
            while self._root is not None:
                cmd, args = self._command_queue.get_nowait()
                self._handle_command(cmd, args)
        except queue.Empty:
            pass

    def _handle_command(self, cmd: str, args: Any) -> None:
        if cmd == "value":
            if self._value_label is not None:
                self._value_label.configure(text=args)
        elif cmd == "slider":
            parameter, value = args
            var = self._slider_vars.get(parameter)
            if var is not None:
                # Setting the variable does not fire the scale command
                var.set(value)
        elif cmd == "fatal":
            self.error = args
            self._do_quit()
        elif cmd == "quit":
            self._do_quit()

    def _update_fade(self) -> None:
        self._opacity = fade_step(
            self._opacity, self._fade_direction, self._config["fade_ms"], POLL_INTERVAL_MS
        )
        if self._opacity < 0.0:
            logger.debug("applet: faded out, closing")
            self._do_quit()
            return
        self._root.attributes("-alpha", self._opacity)

    def _do_quit(self) -> None:
        if self._root is not None:
            self._root.quit()
            self._root.destroy()
            self._root = None
