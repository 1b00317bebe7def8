"""Event log reading against stand-in pywin32 modules, so it runs on any OS."""

import sys
import types
from datetime import datetime, timezone

import pytest

from wem_check.checker import events
from wem_check.checker.events import BATCH_SIZE, query_event_log
from wem_check.shared.errors import LogQueryError

LOG_NAME = "WEM Infrastructure Service"
PROVIDER = "Norskale Broker Service"


class FakeWinError(Exception):
    """Shape of pywintypes.error: (winerror, funcname, strerror)."""

    def __init__(self, winerror, funcname, strerror):
        super().__init__(winerror, funcname, strerror)
        self.winerror = winerror
        self.funcname = funcname
        self.strerror = strerror


def event_xml(event_id, level, system_time, *data, provider=PROVIDER):
    data_xml = "".join(f"<Data>{d}</Data>" for d in data)
    return (
        '<Event xmlns="http://schemas.microsoft.com/win/2004/08/events/event">'
        f'<System><Provider Name="{provider}" /><EventID>{event_id}</EventID>'
        f'<Level>{level}</Level><TimeCreated SystemTime="{system_time}" /></System>'
        f"<EventData>{data_xml}</EventData></Event>"
    )


class FakeEventLogApi:
    """Minimal win32evtlog: records calls and serves handles in batches."""

    EvtQueryChannelPath = 0x1
    EvtQueryReverseDirection = 0x200
    EvtRenderEventXml = 1
    EvtFormatMessageEvent = 1
    EvtFormatMessageLevel = 2

    def __init__(self):
        self.batches = []
        self.records = {}
        self.query_error = None
        self.next_error = None
        self.metadata = {}  # provider -> {handle: (message, level)}
        self.format_errors = set()  # (handle, flags)
        self.query_calls = []
        self.next_calls = []
        self.metadata_calls = []

    def as_module(self):
        module = types.ModuleType("win32evtlog")
        for name in ("EvtQueryChannelPath", "EvtQueryReverseDirection", "EvtRenderEventXml",
                     "EvtFormatMessageEvent", "EvtFormatMessageLevel"):
            setattr(module, name, getattr(self, name))
        module.EvtQuery = self.EvtQuery
        module.EvtNext = self.EvtNext
        module.EvtRender = self.EvtRender
        module.EvtOpenPublisherMetadata = self.EvtOpenPublisherMetadata
        module.EvtFormatMessage = self.EvtFormatMessage
        return module

    def EvtQuery(self, path, flags):
        self.query_calls.append((path, flags))
        if self.query_error:
            raise self.query_error
        return "query-handle"

    def EvtNext(self, query, count):
        self.next_calls.append((query, count))
        if self.next_error:
            raise self.next_error
        return self.batches.pop(0) if self.batches else ()

    def EvtRender(self, handle, flags):
        assert flags == self.EvtRenderEventXml
        return self.records[handle]

    def EvtOpenPublisherMetadata(self, provider):
        self.metadata_calls.append(provider)
        if provider not in self.metadata:
            raise FakeWinError(2, "EvtOpenPublisherMetadata", "The system cannot find the file specified.")
        return provider

    def EvtFormatMessage(self, metadata, handle, flags):
        if (handle, flags) in self.format_errors:
            raise FakeWinError(15027, "EvtFormatMessage", "The message resource is present but the message was not found.")
        message, level = self.metadata[metadata][handle]
        return message if flags == self.EvtFormatMessageEvent else level


@pytest.fixture
def api(monkeypatch):
    fake = FakeEventLogApi()
    monkeypatch.setitem(sys.modules, "win32evtlog", fake.as_module())
    monkeypatch.setitem(sys.modules, "pywintypes", types.SimpleNamespace(error=FakeWinError))
    monkeypatch.setattr(events, "is_windows", lambda: True)
    return fake


@pytest.mark.parametrize("error,reason", [
    (FakeWinError(15007, "EvtQuery", "The specified channel could not be found."),
     "log does not exist on this system"),
    (FakeWinError(5, "EvtQuery", "Access is denied."),
     "access denied (run as Administrator or join Event Log Readers)"),
    (FakeWinError(87, "EvtQuery", "The parameter is incorrect."),
     "EvtQuery: The parameter is incorrect."),
])
def test_query_errors_become_log_query_error(api, error, reason):
    api.query_error = error

    with pytest.raises(LogQueryError) as info:
        list(query_event_log(LOG_NAME))

    assert info.value.log_name == LOG_NAME
    assert info.value.reason == reason
    assert info.value.__cause__ is error


def test_read_error_mid_query_becomes_log_query_error(api):
    api.next_error = FakeWinError(1734, "EvtNext", "The array bounds are invalid.")

    with pytest.raises(LogQueryError) as info:
        list(query_event_log(LOG_NAME))
    assert info.value.reason == "EvtNext: The array bounds are invalid."


def test_channel_is_queried_newest_first(api):
    list(query_event_log(LOG_NAME))
    assert api.query_calls == [(LOG_NAME, api.EvtQueryChannelPath | api.EvtQueryReverseDirection)]


def test_batches_are_read_until_empty(api):
    api.records = {
        "h1": event_xml(1, 4, "2024-05-01T10:00:03Z", "third"),
        "h2": event_xml(2, 4, "2024-05-01T10:00:02Z", "second"),
        "h3": event_xml(3, 3, "2024-05-01T10:00:01Z", "first"),
    }
    api.batches = [("h1", "h2"), ("h3",)]

    entries = list(query_event_log(LOG_NAME))

    assert [e.id for e in entries] == [1, 2, 3]
    assert entries[0].time_created == datetime(2024, 5, 1, 10, 0, 3, tzinfo=timezone.utc)
    assert len(api.next_calls) == 3
    assert all(count == BATCH_SIZE for _, count in api.next_calls)


def test_missing_publisher_metadata_falls_back_to_event_data(api):
    api.records = {
        "h1": event_xml(0, 4, "2024-05-01T10:00:00Z", "LICENSING: LS indicates WEM is LAS Activated.", "LAS"),
        "h2": event_xml(9, 2, "2024-05-01T09:00:00Z", "Broker failure"),
    }
    api.batches = [("h1", "h2")]

    entries = list(query_event_log(LOG_NAME))

    assert entries[0].message == "LICENSING: LS indicates WEM is LAS Activated. LAS"
    assert entries[0].level == "Information"
    assert entries[1].level == "Error"
    # metadata lookup is attempted once per provider
    assert api.metadata_calls == [PROVIDER]


def test_publisher_metadata_formats_message_and_level(api):
    api.records = {
        "h1": event_xml(0, 4, "2024-05-01T10:00:00Z", "raw"),
        "h2": event_xml(0, 4, "2024-05-01T09:00:00Z", "raw"),
    }
    api.metadata = {PROVIDER: {
        "h1": ("LICENSING: LS indicates WEM is LAS Activated.\r\n", "Information"),
        "h2": ("LICENSING: LS indicates WEM is LAS Activated.", "Informational"),
    }}
    api.batches = [("h1",), ("h2",)]

    entries = list(query_event_log(LOG_NAME))

    assert [e.message for e in entries] == ["LICENSING: LS indicates WEM is LAS Activated."] * 2
    assert [e.level for e in entries] == ["Information", "Informational"]
    assert api.metadata_calls == [PROVIDER]


def test_message_format_failure_keeps_event_data(api):
    api.records = {"h1": event_xml(0, 3, "2024-05-01T10:00:00Z", "raw", "text")}
    api.metadata = {PROVIDER: {"h1": ("unused", "Warning")}}
    api.format_errors = {("h1", api.EvtFormatMessageEvent)}
    api.batches = [("h1",)]

    (entry,) = query_event_log(LOG_NAME)

    assert entry.message == "raw text"
    assert entry.level == "Warning"
