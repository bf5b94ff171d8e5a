import logging
import re
from typing import Optional

from pydantic import BaseModel, Field

from wlanpi_wireless.utils import run_command_async

logger = logging.getLogger(__name__)

_CELL = re.compile(r"^Cell\s+\d+\s+-\s+Address:\s*(?P<address>\S+)")
_QUALITY = re.compile(r"Quality[=:](?P<quality>\d+)/(?P<max>\d+)")
_SIGNAL = re.compile(r"Signal level[=:](?P<signal>-?\d+(?:\.\d+)?)\s*(?P<unit>dBm|/\d+)?")
_FREQUENCY = re.compile(r"Frequency:(?P<frequency>[\d.]+)\s*GHz")


class AccessPoint(BaseModel):
    """An access point seen by the scan tool"""

    address: str = Field(..., description="BSSID")
    ssid: str = Field("", description="Empty for hidden networks")
    channel: Optional[int] = Field(None)
    frequency: Optional[float] = Field(None, description="GHz")
    mode: Optional[str] = Field(None)
    quality: Optional[int] = Field(None, description="Percent")
    signal: Optional[int] = Field(None, description="dBm")
    security: str = Field("open", description="open, wep, wpa or wpa2")


def _security(encrypted: bool, ies: list[str]) -> str:
    if not encrypted:
        return "open"
    if any("WPA2" in ie for ie in ies):
        return "wpa2"
    if any("WPA" in ie for ie in ies):
        return "wpa"
    return "wep"


def parse_iwlist_scan(output: str) -> list[AccessPoint]:
    """Parses ``iwlist <iface> scan`` output into one AccessPoint per cell."""
    access_points = []
    current: Optional[dict] = None
    encrypted = False
    ies: list[str] = []

    def finish():
        if current is not None:
            current["security"] = _security(encrypted, ies)
            access_points.append(AccessPoint(**current))

    for raw in output.splitlines():
        line = raw.strip()
        cell = _CELL.match(line)
        if cell:
            finish()
            current, encrypted, ies = {"address": cell.group("address")}, False, []
            continue
        if current is None:
            continue

        if line.startswith("ESSID:"):
            essid = line.split(":", 1)[1].strip().strip('"')
            current["ssid"] = "" if essid == "<hidden>" else essid
        elif line.startswith("Channel:"):
            current["channel"] = int(line.split(":", 1)[1])
        elif line.startswith("Frequency:"):
            frequency = _FREQUENCY.match(line)
            if frequency:
                current["frequency"] = float(frequency.group("frequency"))
            channel = re.search(r"\(Channel (\d+)\)", line)
            if channel and "channel" not in current:
                current["channel"] = int(channel.group(1))
        elif line.startswith("Mode:"):
            current["mode"] = line.split(":", 1)[1].strip().lower()
        elif line.startswith("Quality") or "Signal level" in line:
            quality = _QUALITY.search(line)
            if quality:
                current["quality"] = round(
                    int(quality.group("quality")) * 100 / int(quality.group("max"))
                )
            signal = _SIGNAL.search(line)
            if signal and signal.group("unit") == "dBm":
                current["signal"] = round(float(signal.group("signal")))
        elif line.startswith("Encryption key:"):
            encrypted = line.split(":", 1)[1].strip().lower() == "on"
        elif line.startswith("IE:"):
            ies.append(line)

    finish()
    return access_points


async def scan(interface: str, tool: str = "iwlist") -> list[AccessPoint]:
    result = await run_command_async([tool, interface, "scan"])
    access_points = parse_iwlist_scan(result.stdout)
    logger.debug(f"Found {len(access_points)} wireless networks at {interface}")
    return access_points
