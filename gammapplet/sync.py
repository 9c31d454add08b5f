"""Periodic reconciliation of slider input with the gammarelay service.

Key classes:
    - SyncEngine: Accumulates slider input and flushes it to the relay as
      rounded, range-checked deltas (one call per dirty parameter per tick).
    - SyncWorker: Owns a SyncEngine on a dedicated thread and serializes UI
      events and timer ticks through a single queue.

Thread Safety:
    SyncEngine is single-threaded. SyncWorker is the only component that
    calls into it at runtime; its public methods only enqueue commands, so the
    UI thread never waits on a D-Bus round trip.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import TYPE_CHECKING, Any, Callable

from gammapplet.relay import GammaRelayError
from gammapplet.settings_state import Settings
from gammapplet.units import CONTINUOUS_PARAMETERS, UNITS, Parameter, RangePolicy, parse_parameter

if TYPE_CHECKING:
    from gammapplet.relay import GammaRelayClient, RelaySnapshot

logger = logging.getLogger(__name__)

# Flush period of the original applet
DEFAULT_TICK_MS = 7

DisplayCallback = Callable[[Parameter, str], None]
ValueCallback = Callable[[Parameter, float], None]


class SyncEngine:
    """Turns a stream of slider positions into delta calls on the relay.

    Slider events only touch local state. For each dirty parameter ``tick()``
    converts and rounds the pending delta; when that is non-zero it reads the
    current relay value, applies the parameter's range policy and issues at
    most one call for it.

    Example:
        >>> engine = SyncEngine.from_relay(client, defaults)
        >>> engine.set_temperature(0.61)
        >>> engine.set_temperature(0.62)
        >>> engine.tick()  # one UpdateTemperature call for the net movement
        1
    """

    def __init__(
        self,
        settings: Settings,
        relay: GammaRelayClient,
        on_display: DisplayCallback | None = None,
        on_value: ValueCallback | None = None,
        cross_invalidation: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Local mirrors, already seeded from the relay.
            relay: Client used for every read and write.
            on_display: Called with the value label text after a flush or reset.
            on_value: Called with the new slider position after a reset.
            cross_invalidation: If True, a flush of any parameter drops the
                pending input of all four. If False, only the flushed one.
        """
        self._settings = settings
        self._relay = relay
        self.on_display = on_display
        self.on_value = on_value
        self._cross_invalidation = cross_invalidation
        self.startup_snapshot: RelaySnapshot | None = None

    @classmethod
    def from_relay(
        cls,
        relay: GammaRelayClient,
        defaults: dict[str, float],
        **kwargs: Any,
    ) -> SyncEngine:
        """Build an engine from one blocking read of the relay state.

        Args:
            relay: Connected relay client.
            defaults: Reset targets (temperature, brightness, gamma) in native units.
            **kwargs: Forwarded to SyncEngine.

        Raises:
            GammaRelayError: If the relay cannot be read.
        """
        snapshot = relay.snapshot()
        logger.info(
            "sync: startup state inverted=%s temperature=%d brightness=%.2f gamma=%.2f",
            snapshot.inverted,
            snapshot.temperature,
            snapshot.brightness,
            snapshot.gamma,
        )
        settings = Settings.from_native(
            snapshot.inverted,
            snapshot.temperature,
            snapshot.brightness,
            snapshot.gamma,
            defaults,
        )
        engine = cls(settings, relay, **kwargs)
        engine.startup_snapshot = snapshot
        return engine

    @property
    def settings(self) -> Settings:
        return self._settings

    # Input

    def set_invert(self, on: bool) -> None:
        self._settings.set_invert(on)

    def set_temperature(self, value: float) -> None:
        self._settings.set_temperature(value)

    def set_brightness(self, value: float) -> None:
        self._settings.set_brightness(value)

    def set_gamma(self, value: float) -> None:
        self._settings.set_gamma(value)

    def handle(self, cmd: str, args: Any) -> None:
        """Apply one queued command (see SyncWorker)."""
        if cmd == "set":
            parameter, value = args
            self._settings.set_value(parameter, value)
        elif cmd == "invert":
            self.set_invert(args)
        elif cmd == "reset":
            self.reset(args)
        else:
            logger.warning("sync: unknown command %s", cmd)

    # Flush

    def tick(self) -> int:
        """Flush pending input to the relay.

        Returns:
            Number of relay calls issued.

        Raises:
            GammaRelayError: If any relay call fails.
        """
        calls = 0
        if self._settings.invert.dirty:
            calls += self._flush_invert()
        for parameter in CONTINUOUS_PARAMETERS:
            if self._settings.state(parameter).dirty:
                calls += self._flush_continuous(parameter)
        return calls

    def _flush_invert(self) -> int:
        state = self._settings.invert
        if not state.needs_toggle:
            # An even number of toggles cancels out
            state.invalidate()
            return 0
        self._relay.toggle_inverted()
        logger.debug("sync: toggled invert")
        self._invalidate_after(Parameter.INVERT)
        return 1

    def _flush_continuous(self, parameter: Parameter) -> int:
        units = UNITS[parameter]
        state = self._settings.state(parameter)

        delta = units.round_delta(units.delta_from_ui(state.delta_accumulation))
        if delta == 0:
            # Residual below the rounding step; no call can result
            return 0

        server_value = self._read(parameter)
        final_value = units.round_value(server_value + delta)

        if not units.within(final_value):
            if units.policy is RangePolicy.GATE:
                logger.debug(
                    "sync: %s held, proposed=%.4f outside (%s, %s)",
                    parameter.value,
                    final_value,
                    units.low,
                    units.high,
                )
                return 0
            final_value = units.low if final_value < units.low else units.high
            delta = final_value - server_value

        if delta == 0:
            return 0

        self._write(parameter, delta)
        logger.debug(
            "sync: flushed %s delta=%s server=%s final=%s",
            parameter.value,
            delta,
            server_value,
            final_value,
        )
        self._display(parameter, units.format(final_value))
        self._invalidate_after(parameter)
        return 1

    # Reset

    def reset(self, name: str) -> bool:
        """Put a parameter back to its configured default.

        Runs immediately instead of waiting for the next tick.

        Args:
            name: Widget name of the parameter ("temperature", "brightness", "gamma").

        Returns:
            True if a reset call was issued, False if the name has no default.

        Raises:
            GammaRelayError: If a relay call fails.
        """
        parameter = parse_parameter(name)
        if parameter is None or parameter is Parameter.INVERT:
            logger.warning("sync: no default for %r, ignoring reset", name)
            return False

        units = UNITS[parameter]
        state = self._settings.state(parameter)

        server_value = self._read(parameter)
        hard_delta = state.default - server_value
        if parameter is Parameter.TEMPERATURE:
            hard_delta = int(hard_delta)
        self._write(parameter, hard_delta)
        logger.info(
            "sync: reset %s to %s (delta=%s)", parameter.value, state.default, hard_delta
        )

        state.set(units.to_ui(server_value + hard_delta))
        self._display(parameter, units.format(state.default))
        if self.on_value is not None:
            self.on_value(parameter, state.value)
        self._invalidate_after(parameter)
        return True

    # Helpers

    def _read(self, parameter: Parameter) -> float:
        return getattr(self._relay, parameter.value)()

    def _write(self, parameter: Parameter, delta: float) -> None:
        getattr(self._relay, f"update_{parameter.value}")(delta)

    def _display(self, parameter: Parameter, text: str) -> None:
        if self.on_display is not None:
            self.on_display(parameter, text)

    def _invalidate_after(self, parameter: Parameter) -> None:
        if self._cross_invalidation:
            self._settings.invalidate_deltas()
        else:
            self._settings.invalidate(parameter)


class SyncWorker:
    """Runs a SyncEngine on its own thread.

    UI callbacks enqueue commands; the worker drains the queue and calls
    ``tick()`` every ``tick_ms``. Any error is fatal: the worker logs it,
    stops and reports it through ``on_fatal``.

    Usage:
        worker = SyncWorker(engine, tick_ms=7, on_fatal=handle_fatal)
        worker.start()
        worker.post("set", (Parameter.GAMMA, 0.4))
        worker.stop()
    """

    def __init__(
        self,
        engine: SyncEngine,
        tick_ms: int = DEFAULT_TICK_MS,
        on_fatal: Callable[[Exception], None] | None = None,
    ) -> None:
        self._engine = engine
        self._interval = tick_ms / 1000.0
        self.on_fatal = on_fatal
        self._command_queue: queue.Queue[tuple[str, Any]] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._running = False
        self.error: Exception | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._running = True
        # Daemon so a call stuck in the relay never blocks interpreter exit
        self._thread = threading.Thread(target=self._run_loop, name="gammapplet-sync", daemon=True)
        self._thread.start()
        logger.debug("worker: started, interval=%.3fs", self._interval)

    def stop(self, timeout: float = 2.0) -> None:
        self._running = False
        self._command_queue.put(("quit", None))

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        logger.debug("worker: stopped")

    def post(self, cmd: str, args: Any = None) -> None:
        """Enqueue a command for the engine. Never blocks."""
        self._command_queue.put((cmd, args))

    def _run_loop(self) -> None:
        next_tick = time.monotonic() + self._interval
        try:
            while self._running:
                timeout = max(0.0, next_tick - time.monotonic())
                try:
                    cmd, args = self._command_queue.get(timeout=timeout)
                except queue.Empty:
                    pass
                else:
                    if cmd == "quit":
                        break
                    self._engine.handle(cmd, args)

                now = time.monotonic()
                if now >= next_tick:
                    self._engine.tick()
                    next_tick += self._interval
                    if next_tick < now:
                        # Fell behind (slow call); skip the missed ticks
                        next_tick = now + self._interval
        except GammaRelayError as e:
            logger.critical("worker: relay call failed, stopping: %s", e)
            self._fail(e)
        except Exception as e:
            logger.critical("worker: unexpected error, stopping: %s", e, exc_info=True)
            self._fail(e)
        finally:
            self._running = False

    def _fail(self, error: Exception) -> None:
        self.error = error
        if self.on_fatal is not None:
            self.on_fatal(error)
