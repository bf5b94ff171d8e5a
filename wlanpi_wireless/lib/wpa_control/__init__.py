"""
wpa_cli control channel

Drives wpa_supplicant through an interactive ``wpa_cli -i <iface>`` process.
The single output stream of that process mixes unsolicited event lines with
replies to commands; this package separates the two:

- LineFramer: raw output chunks to trimmed lines, prompt removed
- parse_control_event: "<3>CTRL-..." lines to ControlEvent
- CommandChannel: one command on the wire at a time, FIFO admission,
  non-event lines attributed to the pending command
- Monitor: owns the process and wires the pieces together
- WpaCommands / NetworkWorkflow: primitive commands and network workflows

Usage:
    from wlanpi_wireless.lib.wpa_control import Monitor, WpaCommands

    async with Monitor("wlan0") as monitor:
        monitor.events.on("connected", lambda args: print("up", args))
        print(await WpaCommands(monitor).status())
"""

from .channel import CommandChannel
from .classifier import parse_control_event
from .commands import WpaCommands
from .domain import (
    ChannelClosed,
    CommandFailure,
    CommandTimeout,
    ControlEvent,
    EventKind,
    Messages,
    NetworkRecord,
    NetworkStepFailure,
    SubprocessSpawnFailure,
    WpaControlException,
)
from .framer import LineFramer
from .monitor import Monitor
from .networks import NetworkWorkflow
from .status import parse_status, resolve_mode

__all__ = [
    "ChannelClosed",
    "CommandChannel",
    "CommandFailure",
    "CommandTimeout",
    "ControlEvent",
    "EventKind",
    "LineFramer",
    "Messages",
    "Monitor",
    "NetworkRecord",
    "NetworkStepFailure",
    "NetworkWorkflow",
    "SubprocessSpawnFailure",
    "WpaCommands",
    "WpaControlException",
    "parse_control_event",
    "parse_status",
    "resolve_mode",
]
