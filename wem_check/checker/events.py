"""Licensing event lookup in the WEM Infrastructure Service event log.

Records are read through the Windows Event Log API (pywin32 ``win32evtlog``),
newest first. Each record is rendered to XML for its system fields; message
text and level name come from the publisher's message table when it can be
loaded, otherwise from the raw event data.
"""

import fnmatch
import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional
from xml.etree import ElementTree as ET

from wem_check.shared.errors import LogQueryError
from wem_check.shared.schemas import EventLogEntry
from wem_check.shared.system import is_windows

logger = logging.getLogger(__name__)

EVENT_NS = "{http://schemas.microsoft.com/win/2004/08/events/event}"

# Standard level names used when the publisher cannot format its own
LEVEL_NAMES = {
    0: "Information",
    1: "Critical",
    2: "Error",
    3: "Warning",
    4: "Information",
    5: "Verbose",
}

# Records fetched per EvtNext call
BATCH_SIZE = 100

ERROR_ACCESS_DENIED = 5
ERROR_EVT_CHANNEL_NOT_FOUND = 15007

_SYSTEM_TIME_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?(?P<tz>Z|[+-]\d{2}:\d{2})?$"
)

EntryReader = Callable[[str], Iterable[EventLogEntry]]


def parse_system_time(value: str) -> datetime:
    """Parse an event ``SystemTime`` attribute into an aware UTC datetime.

    Windows writes up to 7 fractional digits (100ns ticks); they are cut to
    microseconds.
    """
    m = _SYSTEM_TIME_RE.match(value.strip())
    if not m:
        raise ValueError(f"Unrecognised SystemTime: {value!r}")
    frac = (m.group("frac") or "0")[:6].ljust(6, "0")
    tz = m.group("tz") or "Z"
    if tz == "Z":
        tz = "+00:00"
    parsed = datetime.fromisoformat(f"{m.group('base')}.{frac}{tz}")
    return parsed.astimezone(timezone.utc)


def parse_event_xml(xml_str: str) -> tuple[str, EventLogEntry]:
    """Decode rendered event XML.

    Returns:
        (provider name, entry). The entry's level comes from LEVEL_NAMES and its
        message is the EventData values joined by spaces.
    """
    root = ET.fromstring(xml_str)
    system = root.find(f"{EVENT_NS}System")
    if system is None:
        raise ValueError("Event XML has no System element")

    provider_el = system.find(f"{EVENT_NS}Provider")
    provider = provider_el.get("Name", "") if provider_el is not None else ""

    time_el = system.find(f"{EVENT_NS}TimeCreated")
    if time_el is None or not time_el.get("SystemTime"):
        raise ValueError("Event XML has no TimeCreated/@SystemTime")

    event_id = int(system.findtext(f"{EVENT_NS}EventID", default="0").strip() or 0)
    level_code = int(system.findtext(f"{EVENT_NS}Level", default="0").strip() or 0)

    data = [
        d.text.strip()
        for d in root.findall(f"{EVENT_NS}EventData/{EVENT_NS}Data")
        if d.text and d.text.strip()
    ]

    entry = EventLogEntry(
        time_created=parse_system_time(time_el.get("SystemTime")),
        id=event_id,
        level=LEVEL_NAMES.get(level_code, str(level_code)),
        message=" ".join(data),
    )
    return provider, entry


class _MessageFormatter:
    """Format messages and level names via publisher metadata, cached per provider."""

    def __init__(self) -> None:
        self._metadata: dict = {}

    def _get_metadata(self, provider: str):
        import pywintypes
        import win32evtlog

        if provider not in self._metadata:
            try:
                self._metadata[provider] = win32evtlog.EvtOpenPublisherMetadata(provider)
            except pywintypes.error as e:
                logger.debug(f"No publisher metadata for '{provider}': {e.strerror}")
                self._metadata[provider] = None
        return self._metadata[provider]

    def format(self, provider: str, handle, entry: EventLogEntry) -> EventLogEntry:
        import pywintypes
        import win32evtlog

        if not provider:
            return entry
        metadata = self._get_metadata(provider)
        if metadata is None:
            return entry

        update = {}
        try:
            update["message"] = win32evtlog.EvtFormatMessage(
                metadata, handle, win32evtlog.EvtFormatMessageEvent
            ).strip()
        except pywintypes.error as e:
            logger.debug(f"Could not format message for event {entry.id}: {e.strerror}")
        try:
            update["level"] = win32evtlog.EvtFormatMessage(
                metadata, handle, win32evtlog.EvtFormatMessageLevel
            ).strip() or entry.level
        except pywintypes.error as e:
            logger.debug(f"Could not format level for event {entry.id}: {e.strerror}")
        return entry.model_copy(update=update) if update else entry


def query_event_log(log_name: str) -> Iterator[EventLogEntry]:
    """Yield every record of an event log channel, newest first.

    Raises:
        LogQueryError: channel missing, access denied, or no event log API.
    """
    if not is_windows():
        raise LogQueryError(log_name, "Windows event log is not available on this platform")

    import pywintypes
    import win32evtlog

    flags = win32evtlog.EvtQueryChannelPath | win32evtlog.EvtQueryReverseDirection
    try:
        query = win32evtlog.EvtQuery(log_name, flags)
    except pywintypes.error as e:
        if e.winerror == ERROR_EVT_CHANNEL_NOT_FOUND:
            reason = "log does not exist on this system"
        elif e.winerror == ERROR_ACCESS_DENIED:
            reason = "access denied (run as Administrator or join Event Log Readers)"
        else:
            reason = f"{e.funcname}: {e.strerror}"
        raise LogQueryError(log_name, reason) from e

    formatter = _MessageFormatter()
    count = 0
    while True:
        try:
            handles = win32evtlog.EvtNext(query, BATCH_SIZE)
        except pywintypes.error as e:
            raise LogQueryError(log_name, f"{e.funcname}: {e.strerror}") from e
        if not handles:
            break
        for handle in handles:
            xml_str = win32evtlog.EvtRender(handle, win32evtlog.EvtRenderEventXml)
            provider, entry = parse_event_xml(xml_str)
            count += 1
            yield formatter.format(provider, handle, entry)
    logger.debug(f"Read {count} records from '{log_name}'")


def matches_pattern(message: Optional[str], pattern: str) -> bool:
    """Case-insensitive wildcard match over the whole message (PowerShell ``-like``)."""
    if message is None:
        return False
    return fnmatch.fnmatchcase(message.casefold(), pattern.casefold())


def fetch_recent_licensing_events(
    log_name: str,
    pattern: str,
    limit: int,
    read_entries: EntryReader = query_event_log,
) -> list[EventLogEntry]:
    """Return up to ``limit`` matching entries, most recent first.

    Args:
        log_name: Event log channel to read in full.
        pattern: Wildcard pattern the message must match.
        limit: Maximum number of entries returned.
        read_entries: Source of log records.

    Raises:
        LogQueryError: the log could not be read.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    logger.info(f"Querying event log '{log_name}' for '{pattern}'")
    matched = [e for e in read_entries(log_name) if matches_pattern(e.message, pattern)]
    matched.sort(key=lambda e: e.time_created, reverse=True)
    logger.info(f"{len(matched)} matching entries, showing {min(len(matched), limit)}")
    return matched[:limit]
