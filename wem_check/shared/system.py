"""Host platform helpers."""

import platform


def is_windows() -> bool:
    return platform.system().lower() == "windows"
