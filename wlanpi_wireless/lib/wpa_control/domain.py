import typing as t
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Event lines look like "<3>CTRL-EVENT-CONNECTED ...": a priority digit in
# angle brackets followed by the CTRL tag.
EVENT_MARKER_PATTERN = r"^<(?P<priority>\d)>(?P<body>CTRL\S*.*)$"
PROMPT = ">"


class EventKind(Enum):
    SCANNING = "scanning"
    SCANNED = "scanned"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    INVALID_KEY = "invalidkey"
    TERMINATING = "terminating"

    @classmethod
    def from_tag(cls, tag: str) -> t.Optional["EventKind"]:
        return EVENT_TAGS.get(tag.upper())


EVENT_TAGS: dict[str, EventKind] = {
    "CTRL-EVENT-SCAN-STARTED": EventKind.SCANNING,
    "CTRL-EVENT-SCAN-RESULTS": EventKind.SCANNED,
    "CTRL-EVENT-CONNECTED": EventKind.CONNECTED,
    "CTRL-EVENT-DISCONNECTED": EventKind.DISCONNECTED,
    "CTRL-EVENT-SSID-TEMP-DISABLED": EventKind.INVALID_KEY,
    "CTRL-EVENT-TERMINATING": EventKind.TERMINATING,
}


class ControlEvent(BaseModel):
    """A parsed, unsolicited event line from the control channel."""

    model_config = ConfigDict(frozen=True)

    tag: str = Field(..., description="Uppercased tag, e.g. CTRL-EVENT-CONNECTED")
    args: dict[str, str] = Field(default_factory=dict)
    priority: int = Field(3, description="wpa_supplicant message level digit")
    raw: str = Field("", description="The line the event was parsed from")

    @property
    def kind(self) -> t.Optional[EventKind]:
        return EventKind.from_tag(self.tag)


class NetworkRecord(BaseModel):
    """A configured network as reported by list_networks."""

    id: str
    ssid: str
    bssid: str = ""
    flags: str = ""

    @property
    def current(self) -> bool:
        return "[CURRENT]" in self.flags

    @property
    def disabled(self) -> bool:
        return "[DISABLED]" in self.flags

    def matches_ssid(self, ssid: str) -> bool:
        return self.ssid == ssid or self.ssid == f'"{ssid}"'


class Mode(Enum):
    IDLE = ""
    STATION = "station"
    AP = "ap"
    UNKNOWN = "unknown"


class WpaControlException(Exception):
    pass


class SubprocessSpawnFailure(WpaControlException):
    pass


class ChannelClosed(WpaControlException):
    def __init__(self, message: str = "Control channel closed", return_code=None):
        super().__init__(message)
        self.return_code = return_code


class CommandFailure(WpaControlException):
    def __init__(self, command: str, reply: str):
        super().__init__(reply)
        self.command = command
        self.reply = reply


class CommandTimeout(CommandFailure):
    def __init__(self, command: str, timeout: float):
        super().__init__(command, f"No reply to '{command}' within {timeout}s")
        self.timeout = timeout


class NetworkStepFailure(WpaControlException):
    """A step of a multi-command network workflow failed; earlier steps stay applied."""

    def __init__(self, network_id: str, step: str, cause: Exception):
        super().__init__(f"Network {network_id}: '{step}' failed: {cause}")
        self.network_id = network_id
        self.step = step
        self.cause = cause


class Messages:

    class WpaControlEvent(BaseModel):
        interface: str = Field()

    class ChannelOpened(WpaControlEvent):
        pid: t.Optional[int] = Field(default=None)

    class ChannelClosed(WpaControlEvent):
        return_code: t.Optional[int] = Field(default=None)

    class ChannelError(WpaControlEvent):
        message: str = Field()

    class ControlEvent(WpaControlEvent):
        tag: str = Field()
        args: dict[str, str] = Field(default_factory=dict)

    class Scanning(ControlEvent):
        pass

    class ScanResults(ControlEvent):
        pass

    class Connected(ControlEvent):
        pass

    class Disconnected(ControlEvent):
        pass

    class InvalidKey(ControlEvent):
        pass

    class Terminating(ControlEvent):
        pass


SEMANTIC_MESSAGES: dict[EventKind, type] = {
    EventKind.SCANNING: Messages.Scanning,
    EventKind.SCANNED: Messages.ScanResults,
    EventKind.CONNECTED: Messages.Connected,
    EventKind.DISCONNECTED: Messages.Disconnected,
    EventKind.INVALID_KEY: Messages.InvalidKey,
    EventKind.TERMINATING: Messages.Terminating,
}
