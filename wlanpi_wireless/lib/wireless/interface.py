import logging
import shutil
from typing import Any, Optional

from wlanpi_wireless.utils import get_interface_ip_addr, run_command_async

logger = logging.getLogger(__name__)

DETECTION_TOOLS = ("lsusb", "iwconfig")


async def set_link_state(interface: str, up: bool):
    state = "up" if up else "down"
    logger.debug(f"Bringing {interface} {state}")
    await run_command_async(["ip", "link", "set", "dev", interface, state])


async def list_interfaces() -> Any:
    """Addresses and link state of every interface, as reported by ``ip -j addr``"""
    return await get_interface_ip_addr()


def _wireless_hint(output: str) -> Optional[str]:
    if "802.11" in output:
        return "802.11"
    if "WLAN" in output.upper():
        return "WLAN"
    return None


async def detect() -> Optional[dict[str, str]]:
    """
    Looks for wireless hardware using whichever detection tools are installed.

    :return: {"device": "802.11"|"WLAN"} for the first tool that finds one, else None
    """
    for tool in DETECTION_TOOLS:
        if shutil.which(tool) is None:
            continue
        try:
            result = await run_command_async([tool], raise_on_fail=False)
        except OSError as e:
            logger.debug(f"Unable to run {tool}: {e}")
            continue
        found = _wireless_hint(result.stdout)
        if found:
            return {"device": found}
    return None
