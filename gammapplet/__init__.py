"""gammapplet - Popup sliders for wl-gammarelay."""

__version__ = "0.1.0"

from gammapplet.input_adapter import InputAdapter  # noqa: E402
from gammapplet.relay import GammaRelayClient, GammaRelayError, RelaySnapshot  # noqa: E402
from gammapplet.settings_state import Settings, SettingState, ToggleState  # noqa: E402
from gammapplet.sync import SyncEngine, SyncWorker  # noqa: E402
from gammapplet.units import Parameter, RangePolicy  # noqa: E402

__all__ = [
    "InputAdapter",
    "GammaRelayClient",
    "GammaRelayError",
    "RelaySnapshot",
    "Settings",
    "SettingState",
    "ToggleState",
    "SyncEngine",
    "SyncWorker",
    "Parameter",
    "RangePolicy",
]
