"""Shared test helper classes and utilities.

This module contains classes that need to be imported directly in test
files (as opposed to pytest fixtures which are auto-injected).
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable

from gammapplet.relay import GammaRelayError, RelaySnapshot


class FakeRelay:
    """In-memory stand-in for GammaRelayClient.

    Applies updates to its own state like the real relay and records every
    write call as a tuple ``(method, *args)`` in ``calls``. Reads are
    recorded separately in ``reads``. Method names in ``fail_on`` raise
    GammaRelayError instead.
    """

    def __init__(
        self,
        inverted: bool = False,
        temperature: int = 6500,
        brightness: float = 1.0,
        gamma: float = 1.0,
    ) -> None:
        self.state: dict[str, Any] = {
            "inverted": inverted,
            "temperature": temperature,
            "brightness": brightness,
            "gamma": gamma,
        }
        self.calls: list[tuple[Any, ...]] = []
        self.reads: list[str] = []
        self.fail_on: set[str] = set()
        self.closed = False
        self._lock = threading.Lock()

    def _check(self, name: str) -> None:
        if name in self.fail_on:
            raise GammaRelayError(name, "simulated failure")

    def _read(self, name: str) -> Any:
        self._check(name)
        with self._lock:
            self.reads.append(name)
            return self.state[name]

    def _write(self, name: str, *args: Any) -> None:
        self._check(name)
        with self._lock:
            self.calls.append((name, *args))

    def inverted(self) -> bool:
        return self._read("inverted")

    def temperature(self) -> int:
        return self._read("temperature")

    def brightness(self) -> float:
        return self._read("brightness")

    def gamma(self) -> float:
        return self._read("gamma")

    def snapshot(self) -> RelaySnapshot:
        return RelaySnapshot(
            inverted=self.inverted(),
            temperature=self.temperature(),
            brightness=self.brightness(),
            gamma=self.gamma(),
        )

    def toggle_inverted(self) -> None:
        self._write("toggle_inverted")
        self.state["inverted"] = not self.state["inverted"]

    def update_temperature(self, delta: int) -> None:
        self._write("update_temperature", delta)
        self.state["temperature"] += delta

    def update_brightness(self, delta: float) -> None:
        self._write("update_brightness", delta)
        self.state["brightness"] += delta

    def update_gamma(self, delta: float) -> None:
        self._write("update_gamma", delta)
        self.state["gamma"] += delta

    def close(self) -> None:
        self.closed = True


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll until predicate() is true or the timeout expires.

    Returns:
        Final value of predicate().
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()
