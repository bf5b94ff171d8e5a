from .domain import Mode


def parse_status(reply: str) -> dict[str, str]:
    """Flattens wpa_cli's key=value status reply into a mapping."""
    status = {}
    for line in reply.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key:
            status[key] = value
    return status


def resolve_mode(status: dict[str, str]) -> str:
    """
    Infers the operating mode of the interface from its status.

    wpa_supplicant has no direct notion of station vs access point here, so
    an explicit "mode" field wins; otherwise a disconnected interface that
    still holds an address is taken to be serving as an AP, one without an
    address is idle (""), and anything else is "unknown".
    """
    if status.get("mode"):
        return status["mode"]
    if status.get("wpa_state", "").lower() == "disconnected":
        return Mode.AP.value if status.get("ip_address") else Mode.IDLE.value
    return Mode.UNKNOWN.value
