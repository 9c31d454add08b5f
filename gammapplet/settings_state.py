"""Local mirror of the relay's parameters and their unflushed slider deltas."""

from __future__ import annotations

from dataclasses import dataclass

from gammapplet.units import UNITS, Parameter


@dataclass
class SettingState:
    """Mirror of one continuous parameter.

    Attributes:
        value: Current slider position in [0, 1].
        delta_accumulation: Sum of slider movement since the last flush.
        default: Reset target in native units.
    """

    value: float = 0.0
    delta_accumulation: float = 0.0
    default: float = 0.0

    def set(self, new_value: float) -> None:
        """Move the slider; consecutive calls telescope into one net delta."""
        self.delta_accumulation += new_value - self.value
        self.value = new_value

    def invalidate(self) -> None:
        self.delta_accumulation = 0.0

    @property
    def dirty(self) -> bool:
        return self.delta_accumulation != 0.0


@dataclass
class ToggleState:
    """Mirror of the invert switch.

    Toggle events are counted instead of summed as floats; only the parity
    of the count decides whether the relay needs a toggle.
    """

    value: float = 0.0
    pending_toggles: int = 0

    def toggle(self, on: bool) -> None:
        self.pending_toggles += 1
        self.value = 1.0 if on else 0.0

    def invalidate(self) -> None:
        self.pending_toggles = 0

    @property
    def delta_accumulation(self) -> float:
        return float(self.pending_toggles)

    @property
    def dirty(self) -> bool:
        return self.pending_toggles != 0

    @property
    def needs_toggle(self) -> bool:
        return self.pending_toggles % 2 == 1


class Settings:
    """The four parameter mirrors of one applet session.

    Not thread-safe on its own: a single owner (the sync worker) applies
    every mutation, so UI events and flushes never interleave.
    """

    def __init__(
        self,
        invert: ToggleState | None = None,
        temperature: SettingState | None = None,
        brightness: SettingState | None = None,
        gamma: SettingState | None = None,
    ) -> None:
        self.invert = invert or ToggleState()
        self.temperature = temperature or SettingState()
        self.brightness = brightness or SettingState()
        self.gamma = gamma or SettingState()

    @classmethod
    def from_native(
        cls,
        inverted: bool,
        temperature: float,
        brightness: float,
        gamma: float,
        defaults: dict[str, float],
    ) -> Settings:
        """Seed mirrors from relay values and defaults from configuration.

        Args:
            inverted: Relay's current invert state.
            temperature: Relay temperature in Kelvin.
            brightness: Relay brightness factor.
            gamma: Relay gamma factor.
            defaults: Reset targets keyed by parameter name, in native units.

        Returns:
            Settings with every accumulation at zero.
        """
        return cls(
            invert=ToggleState(value=1.0 if inverted else 0.0),
            temperature=SettingState(
                value=UNITS[Parameter.TEMPERATURE].to_ui(temperature),
                default=float(defaults["temperature"]),
            ),
            brightness=SettingState(
                value=UNITS[Parameter.BRIGHTNESS].to_ui(brightness),
                default=float(defaults["brightness"]),
            ),
            gamma=SettingState(
                value=UNITS[Parameter.GAMMA].to_ui(gamma),
                default=float(defaults["gamma"]),
            ),
        )

    def state(self, parameter: Parameter) -> SettingState | ToggleState:
        return getattr(self, parameter.value)

    def set_invert(self, on: bool) -> None:
        self.invert.toggle(on)

    def set_temperature(self, value: float) -> None:
        self.temperature.set(value)

    def set_brightness(self, value: float) -> None:
        self.brightness.set(value)

    def set_gamma(self, value: float) -> None:
        self.gamma.set(value)

    def set_value(self, parameter: Parameter, value: float) -> None:
        """Apply a slider move to a continuous parameter by name."""
        if parameter is Parameter.INVERT:
            raise ValueError("invert is a toggle, use set_invert()")
        self.state(parameter).set(value)

    def invalidate(self, parameter: Parameter) -> None:
        self.state(parameter).invalidate()

    def invalidate_deltas(self) -> None:
        """Drop unflushed input on all four parameters."""
        for parameter in Parameter:
            self.state(parameter).invalidate()

    @property
    def dirty(self) -> bool:
        return any(self.state(parameter).dirty for parameter in Parameter)
