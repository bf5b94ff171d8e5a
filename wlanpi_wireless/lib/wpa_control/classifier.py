import re
from typing import Optional

from .domain import EVENT_MARKER_PATTERN, ControlEvent

_EVENT_MARKER = re.compile(EVENT_MARKER_PATTERN)
# key=value tokens may carry a quoted value containing spaces, e.g. ssid="My Net"
_TOKEN = re.compile(r'[^\s=]+="[^"]*"|\S+')


def parse_event_args(tokens: list[str]) -> dict[str, str]:
    """
    Turns key=value tokens into a mapping.

    Tokens without "=" become flags with an empty value. Surrounding
    brackets (as in "[id=0 id_str=]") and value quotes are removed.
    """
    args: dict[str, str] = {}
    for token in tokens:
        token = token.strip("[]")
        if not token:
            continue
        key, sep, value = token.partition("=")
        if not key:
            # "=value" has nothing to key on; keep the token as a flag
            key, value = token, ""
        elif sep and len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        args[key] = value
    return args


def parse_control_event(line: str) -> Optional[ControlEvent]:
    """Returns the event carried by line, or None if it is not an event line."""
    match = _EVENT_MARKER.match(line)
    if match is None:
        return None
    tokens = _TOKEN.findall(match.group("body"))
    return ControlEvent(
        tag=tokens[0].upper(),
        args=parse_event_args(tokens[1:]),
        priority=int(match.group("priority")),
        raw=line,
    )
