"""Console output for the WEM debug mode check."""

from typing import Sequence

from wem_check.shared.errors import LogQueryError, RegistryReadError
from wem_check.shared.schemas import EventLogEntry


# Terminal colours
class Colors:
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    END = '\033[0m'


REMEDIATION_STEPS = (
    "Open the WEM Infrastructure Service Configuration utility on this server.",
    "Go to the 'Advanced Settings' tab.",
    "Select 'Enable debug mode'.",
    "Click 'Save Configuration' (the WEM Infrastructure Service restarts).",
)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def print_unknown_warning(error: RegistryReadError) -> None:
    """Registry value could not be read."""
    print(f"{Colors.YELLOW}⚠️  Unable to determine whether debug mode is enabled for the "
          f"WEM Infrastructure Service.{Colors.END}")
    print(f"{Colors.YELLOW}    Registry value {error.key_path}\\{error.value_name} "
          f"could not be read ({error.reason}).{Colors.END}")


def print_disabled_warning(flag_value: int) -> None:
    """Debug mode is off: show the status and how to turn it on."""
    print(f"{Colors.YELLOW}⚠️  Debug mode is DISABLED for the WEM Infrastructure Service "
          f"(BrokerServiceDebugMode = {flag_value}).{Colors.END}")
    print(f"{Colors.YELLOW}    Licensing events are only logged in debug mode. To enable it:{Colors.END}")
    for i, step in enumerate(REMEDIATION_STEPS, 1):
        print(f"{Colors.YELLOW}      {i}. {step}{Colors.END}")
    print(f"{Colors.YELLOW}    Then run this check again.{Colors.END}")


def print_enabled_notice() -> None:
    print(f"{Colors.GREEN}✅ Debug mode is ENABLED for the WEM Infrastructure Service.{Colors.END}")


def print_query_error(error: LogQueryError) -> None:
    print(f"{Colors.RED}❌ Could not read event log '{error.log_name}': {error.reason}{Colors.END}")


def print_events(entries: Sequence[EventLogEntry], log_name: str) -> None:
    """Print entries as a table: TimeCreated, Id, LevelDisplayName, Message."""
    print(f"\n{Colors.BOLD}Most recent licensing events in '{log_name}':{Colors.END}")
    if not entries:
        print("  (no matching events found)\n")
        return

    rows = [
        (e.time_created.astimezone().strftime(TIME_FORMAT), str(e.id), e.level, e.message)
        for e in entries
    ]
    headers = ("TimeCreated", "Id", "LevelDisplayName", "Message")
    w_time = max(len(headers[0]), *(len(r[0]) for r in rows))
    w_id = max(len(headers[1]), *(len(r[1]) for r in rows))
    w_level = max(len(headers[2]), *(len(r[2]) for r in rows))

    print(f"{headers[0]:<{w_time}} {headers[1]:>{w_id}} {headers[2]:<{w_level}} {headers[3]}")
    print(f"{'-' * w_time} {'-' * w_id} {'-' * w_level} {'-' * len(headers[3])}")
    indent = " " * (w_time + w_id + w_level + 3)
    for time_s, id_s, level, message in rows:
        # Multi-line messages continue under the Message column
        lines = message.splitlines() or [""]
        print(f"{time_s:<{w_time}} {id_s:>{w_id}} {level:<{w_level}} {lines[0]}")
        for line in lines[1:]:
            print(f"{indent}{line}")
    print()


def print_config_error(path, error: Exception) -> None:
    print(f"{Colors.RED}❌ Invalid configuration file {path}:{Colors.END}")
    for line in str(error).splitlines():
        print(f"{Colors.RED}    {line}{Colors.END}")
