"""Blocking D-Bus client for the wl-gammarelay service.

The relay (``rs.wl-gammarelay`` on the session bus) owns the actual screen
color state. This module exposes its four properties and four update methods
as plain synchronous calls using jeepney.

Error Policy:
    Every failure - no bus, service missing, timeout or an error reply - is
    raised as GammaRelayError. Callers treat it as fatal; nothing here retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jeepney import DBusAddress, DBusErrorResponse, Properties, new_method_call
from jeepney.io.blocking import DBusConnection, open_dbus_connection
from jeepney.wrappers import unwrap_msg

logger = logging.getLogger(__name__)

SERVICE = "rs.wl-gammarelay"
OBJECT_PATH = "/"
INTERFACE = "rs.wl.gammarelay"


class GammaRelayError(Exception):
    """Raised when a call to the gammarelay service fails.

    The relay is expected to run alongside the applet, so any failure means
    the applet cannot continue.
    """

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        """Initialize the error.

        Args:
            operation: The call that failed (e.g. "get Temperature").
            cause: Underlying exception or description.
        """
        super().__init__(f"gammarelay {operation} failed: {cause}")
        self.operation = operation


@dataclass(frozen=True)
class RelaySnapshot:
    """Values of the four relay properties, read back to back."""

    inverted: bool
    temperature: int
    brightness: float
    gamma: float


class GammaRelayClient:
    """Synchronous proxy for the ``rs.wl.gammarelay`` interface.

    Example:
        >>> client = GammaRelayClient.open()
        >>> client.temperature()
        6500
        >>> client.update_temperature(-500)
    """

    def __init__(
        self,
        connection: DBusConnection,
        service: str = SERVICE,
        path: str = OBJECT_PATH,
        interface: str = INTERFACE,
        timeout: float | None = None,
    ) -> None:
        """Wrap an open connection.

        Args:
            connection: Blocking jeepney connection.
            service: Bus name of the relay.
            path: Object path of the relay.
            interface: Interface name for methods and properties.
            timeout: Per-call timeout in seconds, None to wait forever.
        """
        self._connection = connection
        self._address = DBusAddress(path, bus_name=service, interface=interface)
        self._timeout = timeout

    @classmethod
    def open(
        cls,
        bus: str = "SESSION",
        service: str = SERVICE,
        path: str = OBJECT_PATH,
        interface: str = INTERFACE,
        timeout: float | None = None,
    ) -> GammaRelayClient:
        """Connect to the message bus and return a client.

        Raises:
            GammaRelayError: If the bus cannot be reached.
        """
        try:
            connection = open_dbus_connection(bus=bus)
        except (OSError, KeyError, ValueError) as e:
            raise GammaRelayError(f"connect to {bus.lower()} bus", e) from e
        logger.info("relay: connected bus=%s service=%s", bus, service)
        return cls(connection, service=service, path=path, interface=interface, timeout=timeout)

    def close(self) -> None:
        self._connection.close()

    def _call(self, operation: str, message) -> tuple[Any, ...]:
        try:
            reply = self._connection.send_and_get_reply(message, timeout=self._timeout)
            return unwrap_msg(reply)
        except (DBusErrorResponse, OSError) as e:
            raise GammaRelayError(operation, e) from e

    def _get_property(self, name: str) -> Any:
        body = self._call(f"get {name}", Properties(self._address).get(name))
        # Properties.Get returns a single variant: (signature, value)
        _signature, value = body[0]
        return value

    def _invoke(self, method: str, signature: str | None = None, body: tuple = ()) -> None:
        message = new_method_call(self._address, method, signature, body)
        self._call(method, message)
        logger.debug("relay: called %s%s", method, body)

    # Properties

    def inverted(self) -> bool:
        return bool(self._get_property("Inverted"))

    def temperature(self) -> int:
        return int(self._get_property("Temperature"))

    def brightness(self) -> float:
        return float(self._get_property("Brightness"))

    def gamma(self) -> float:
        return float(self._get_property("Gamma"))

    def snapshot(self) -> RelaySnapshot:
        """Read all four properties."""
        return RelaySnapshot(
            inverted=self.inverted(),
            temperature=self.temperature(),
            brightness=self.brightness(),
            gamma=self.gamma(),
        )

    # Methods

    def toggle_inverted(self) -> None:
        self._invoke("ToggleInverted")

    def update_temperature(self, delta: int) -> None:
        """Shift temperature by ``delta`` Kelvin (int16 on the wire)."""
        self._invoke("UpdateTemperature", "n", (int(delta),))

    def update_brightness(self, delta: float) -> None:
        self._invoke("UpdateBrightness", "d", (float(delta),))

    def update_gamma(self, delta: float) -> None:
        self._invoke("UpdateGamma", "d", (float(delta),))
