"""WEM debug mode check - registry flag, then licensing events."""

import logging
from typing import Callable, Optional

from wem_check.checker.events import fetch_recent_licensing_events
from wem_check.checker.registry import ValueReader, determine_debug_mode, read_registry_value
from wem_check.checker.report import (
    print_disabled_warning,
    print_enabled_notice,
    print_events,
    print_query_error,
    print_unknown_warning,
)
from wem_check.shared.config import AppConfig, get_config
from wem_check.shared.errors import LogQueryError, RegistryReadError
from wem_check.shared.schemas import CheckResult, DebugModeState, EventLogEntry

logger = logging.getLogger(__name__)

EventFetcher = Callable[[str, str, int], list[EventLogEntry]]

EXIT_OK = 0
EXIT_QUERY_FAILED = 1


def evaluate_and_report(
    flag_value: int,
    config: AppConfig,
    fetch_events: EventFetcher = fetch_recent_licensing_events,
) -> CheckResult:
    """Report the debug mode state and, when enabled, the latest licensing events.

    Args:
        flag_value: BrokerServiceDebugMode value read from the registry.
        config: Application configuration.
        fetch_events: Event query, called at most once.

    Raises:
        LogQueryError: the event log could not be read.
    """
    state = DebugModeState.from_flag(flag_value)
    if state != DebugModeState.ENABLED:
        logger.info(f"Debug mode disabled (value {flag_value}), skipping event query")
        print_disabled_warning(flag_value)
        return CheckResult(state=state, flag_value=flag_value)

    print_enabled_notice()
    ev = config.event_log
    events = fetch_events(ev.log_name, ev.message_pattern, ev.limit)
    print_events(events, ev.log_name)
    return CheckResult(state=state, flag_value=flag_value, query_performed=True, events=events)


def run_check(
    config: Optional[AppConfig] = None,
    read_value: ValueReader = read_registry_value,
    fetch_events: EventFetcher = fetch_recent_licensing_events,
) -> int:
    """Run one check. Returns the process exit code."""
    if config is None:
        config = get_config()

    try:
        flag_value = determine_debug_mode(config.registry, read_value)
    except RegistryReadError as e:
        logger.warning(str(e))
        print_unknown_warning(e)
        return EXIT_OK

    try:
        evaluate_and_report(flag_value, config, fetch_events)
    except LogQueryError as e:
        logger.error(str(e))
        print_query_error(e)
        return EXIT_QUERY_FAILED

    return EXIT_OK
