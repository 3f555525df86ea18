from .config import Settings, TokenSchema, load_settings
from .entities import EntityRecord, arrays_equal, filter_sensors, filter_toggleable
from .ha_api import ErrorKind, HAClient, Result, discover_sensors, discover_toggleable
from .secret import SecretStoreError, TokenStore

__all__ = [
    "EntityRecord",
    "ErrorKind",
    "HAClient",
    "Result",
    "SecretStoreError",
    "Settings",
    "TokenSchema",
    "TokenStore",
    "arrays_equal",
    "discover_sensors",
    "discover_toggleable",
    "filter_sensors",
    "filter_toggleable",
    "load_settings",
]
