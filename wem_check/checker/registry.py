"""Debug mode flag lookup in the Windows registry."""

import logging
from typing import Any, Callable

from wem_check.shared.config import RegistryConfig
from wem_check.shared.errors import RegistryReadError
from wem_check.shared.system import is_windows

logger = logging.getLogger(__name__)

ValueReader = Callable[[str, str, str], Any]


def read_registry_value(hive: str, key_path: str, value_name: str) -> Any:
    """Read a single registry value (read-only access).

    Raises:
        FileNotFoundError: key or value does not exist.
        PermissionError: access denied.
        OSError: any other registry failure, or not running on Windows.
    """
    if not is_windows():
        raise OSError("Not running on Windows")

    import winreg

    hive_map = {
        "HKLM": winreg.HKEY_LOCAL_MACHINE,
        "HKEY_LOCAL_MACHINE": winreg.HKEY_LOCAL_MACHINE,
        "HKCU": winreg.HKEY_CURRENT_USER,
        "HKEY_CURRENT_USER": winreg.HKEY_CURRENT_USER,
    }
    root = hive_map.get(hive.upper())
    if root is None:
        raise OSError(f"Unsupported hive: {hive}")

    with winreg.OpenKey(root, key_path, 0, winreg.KEY_READ) as key:
        value, reg_type = winreg.QueryValueEx(key, value_name)
    logger.debug(f"Registry {hive}\\{key_path}\\{value_name} = {value!r} (type {reg_type})")
    return value


def determine_debug_mode(
    config: RegistryConfig,
    read_value: ValueReader = read_registry_value,
) -> int:
    """Return the BrokerServiceDebugMode value.

    Args:
        config: Registry location of the flag.
        read_value: Reader used to fetch the raw value.

    Raises:
        RegistryReadError: value missing, inaccessible or not an integer.
    """
    try:
        raw = read_value(config.hive, config.key_path, config.value_name)
    except FileNotFoundError as e:
        raise RegistryReadError(config.key_path, config.value_name, "value not found") from e
    except PermissionError as e:
        raise RegistryReadError(config.key_path, config.value_name, "access denied") from e
    except OSError as e:
        raise RegistryReadError(config.key_path, config.value_name, str(e)) from e

    # REG_SZ "1" is accepted as well as REG_DWORD 1
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise RegistryReadError(
            config.key_path, config.value_name, f"unexpected value type {type(raw).__name__}"
        )
    try:
        return int(raw)
    except ValueError as e:
        raise RegistryReadError(config.key_path, config.value_name, f"not an integer: {raw!r}") from e
