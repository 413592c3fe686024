from . import app_state as AppState
from . import dependencies as Dependencies

__all__ = [
    "AppState",
    "Dependencies",
]
