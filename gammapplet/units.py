"""Unit conversion between slider space and gammarelay's native units.

Sliders work in a normalized [0, 1] range. The relay speaks Kelvin for
temperature, a [0, 1] factor for brightness and a [0.5, 1.5] factor for
gamma. Every conversion needed by the sync engine lives here, together with
the rounding used to keep float noise from turning into D-Bus traffic and
the strings shown in the value label.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable


class Parameter(str, Enum):
    """The four display-color parameters, in flush order."""

    INVERT = "invert"
    TEMPERATURE = "temperature"
    BRIGHTNESS = "brightness"
    GAMMA = "gamma"


class RangePolicy(Enum):
    """What to do when a flush would leave the allowed range.

    Policies:
        CLAMP: Shrink the delta so the final value lands on the violated bound.
        GATE: Skip the flush and keep the accumulation pending.
    """

    CLAMP = auto()
    GATE = auto()


TEMPERATURE_MIN = 1000
TEMPERATURE_MAX = 10000
TEMPERATURE_SPAN = TEMPERATURE_MAX - TEMPERATURE_MIN
TEMPERATURE_STEP = 100

BRIGHTNESS_MIN = 0.0
BRIGHTNESS_MAX = 1.0
# Lowest brightness a slider flush may reach; below this the screen is unusable
BRIGHTNESS_FLUSH_FLOOR = 0.2

GAMMA_MIN = 0.5
GAMMA_MAX = 1.5


def _round_hundredths(value: float) -> float:
    """Round to two decimals, halves away from zero."""
    return math.copysign(math.floor(abs(value) * 100.0 + 0.5), value) / 100.0


# Temperature


def temperature_to_ui(kelvin: float) -> float:
    """Map Kelvin in [1000, 10000] to slider space [0, 1]."""
    return (kelvin - TEMPERATURE_MIN) / TEMPERATURE_SPAN


def temperature_delta_from_ui(ui_delta: float) -> int:
    """Convert a slider-space delta to a whole number of Kelvin."""
    return int(round(ui_delta * TEMPERATURE_SPAN))


def round_temperature(kelvin_delta: float) -> int:
    """Snap a Kelvin delta to a multiple of 100, toward zero.

    Truncating rather than rounding to nearest means a residual below one
    step never produces a call, no matter how often it is flushed.
    """
    return int(kelvin_delta / TEMPERATURE_STEP) * TEMPERATURE_STEP


def round_kelvin(kelvin: float) -> int:
    return int(round(kelvin))


def format_temperature(kelvin: float) -> str:
    return f"{int(kelvin)} K"


# Brightness


def brightness_to_ui(brightness: float) -> float:
    return brightness


def brightness_delta_from_ui(ui_delta: float) -> float:
    return ui_delta


def round_brightness(brightness_delta: float) -> float:
    return _round_hundredths(brightness_delta)


def round_brightness_value(brightness: float) -> float:
    return _round_hundredths(brightness)


def format_brightness(brightness: float) -> str:
    percentage = brightness * 100.0
    return f"{percentage:3.0f} %"


# Gamma


def gamma_to_ui(gamma: float) -> float:
    """Map gamma in [0.5, 1.5] to slider space [0, 1]."""
    return gamma - GAMMA_MIN


def gamma_delta_from_ui(ui_delta: float) -> float:
    return ui_delta


def round_gamma(gamma_delta: float) -> float:
    return _round_hundredths(gamma_delta)


def round_gamma_value(gamma: float) -> float:
    return _round_hundredths(gamma)


def format_gamma(gamma: float) -> str:
    return f"{gamma:.2f} γ"


@dataclass(frozen=True)
class ParameterUnits:
    """Conversion and flush policy for one continuous parameter.

    Attributes:
        to_ui: Native value to slider position.
        delta_from_ui: Slider-space delta to native delta.
        round_delta: Rounding applied to every native delta before a call.
        round_value: Rounding applied to a proposed final value before the
            range check, so float noise cannot slip past a bound.
        format: Value label text for a native value.
        low: Lower flush bound (inclusive for CLAMP, exclusive for GATE).
        high: Upper flush bound (inclusive for CLAMP, exclusive for GATE).
        policy: Out-of-range handling.
    """

    to_ui: Callable[[float], float]
    delta_from_ui: Callable[[float], float]
    round_delta: Callable[[float], float]
    round_value: Callable[[float], float]
    format: Callable[[float], str]
    low: float
    high: float
    policy: RangePolicy

    def within(self, value: float) -> bool:
        """Check whether a proposed final value may be flushed as-is."""
        if self.policy is RangePolicy.CLAMP:
            return self.low <= value <= self.high
        return self.low < value < self.high


UNITS: dict[Parameter, ParameterUnits] = {
    Parameter.TEMPERATURE: ParameterUnits(
        to_ui=temperature_to_ui,
        delta_from_ui=temperature_delta_from_ui,
        round_delta=round_temperature,
        round_value=round_kelvin,
        format=format_temperature,
        low=TEMPERATURE_MIN,
        high=TEMPERATURE_MAX,
        policy=RangePolicy.CLAMP,
    ),
    Parameter.BRIGHTNESS: ParameterUnits(
        to_ui=brightness_to_ui,
        delta_from_ui=brightness_delta_from_ui,
        round_delta=round_brightness,
        round_value=round_brightness_value,
        format=format_brightness,
        low=BRIGHTNESS_FLUSH_FLOOR,
        high=BRIGHTNESS_MAX,
        policy=RangePolicy.GATE,
    ),
    Parameter.GAMMA: ParameterUnits(
        to_ui=gamma_to_ui,
        delta_from_ui=gamma_delta_from_ui,
        round_delta=round_gamma,
        round_value=round_gamma_value,
        format=format_gamma,
        low=GAMMA_MIN,
        high=GAMMA_MAX,
        policy=RangePolicy.GATE,
    ),
}

CONTINUOUS_PARAMETERS = (Parameter.TEMPERATURE, Parameter.BRIGHTNESS, Parameter.GAMMA)


def parse_parameter(name: str) -> Parameter | None:
    """Look up a parameter by its widget name, or None if unknown."""
    try:
        return Parameter(name)
    except ValueError:
        return None
