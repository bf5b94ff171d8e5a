import typing as t

from .domain import NetworkRecord
from .status import parse_status

LIST_NETWORKS_HEADER = "network id"
SCAN_RESULTS_HEADER = "bssid"


def quote(value: t.Any) -> str:
    return f'"{value}"'


def parse_network_list(reply: str) -> list[NetworkRecord]:
    """
    Parses the tab separated list_networks reply.

    network id / ssid / bssid / flags
    0\tMyWifi\tany\t[CURRENT]
    """
    networks = []
    for line in reply.splitlines():
        if not line.strip() or line.lower().startswith(LIST_NETWORKS_HEADER):
            continue
        fields = line.split("\t")
        if len(fields) < 2 or not fields[0].strip().isdigit():
            continue
        fields += [""] * (4 - len(fields))
        networks.append(
            NetworkRecord(
                id=fields[0].strip(), ssid=fields[1], bssid=fields[2], flags=fields[3]
            )
        )
    return networks


def parse_scan_results(reply: str) -> list[dict[str, str]]:
    """
    Parses the tab separated scan_results reply.

    bssid / frequency / signal level / flags / ssid
    """
    results = []
    for line in reply.splitlines():
        if not line.strip() or line.lower().startswith(SCAN_RESULTS_HEADER):
            continue
        fields = line.split("\t")
        if len(fields) < 4:
            continue
        fields += [""] * (5 - len(fields))
        results.append(
            {
                "bssid": fields[0],
                "frequency": fields[1],
                "signal": fields[2],
                "flags": fields[3],
                "ssid": fields[4],
            }
        )
    return results


class WpaCommands:
    """Primitive wpa_cli commands issued over a command channel."""

    def __init__(self, channel):
        self.channel = channel

    async def send(self, command: str, multiline: bool = False) -> str:
        return await self.channel.send(command, multiline=multiline)

    async def ping(self) -> str:
        return await self.send("ping")

    async def status(self) -> dict[str, str]:
        return parse_status(await self.send("status", multiline=True))

    async def list_networks(self) -> list[NetworkRecord]:
        return parse_network_list(await self.send("list_networks", multiline=True))

    async def scan(self) -> str:
        return await self.send("scan")

    async def scan_results(self) -> list[dict[str, str]]:
        return parse_scan_results(await self.send("scan_results", multiline=True))

    async def add_network(self) -> str:
        return (await self.send("add_network")).strip()

    async def set_network(self, network_id: str, key: str, value: t.Any) -> str:
        return await self.send(f"set_network {network_id} {key} {value}")

    async def set_network_string(self, network_id: str, key: str, value: t.Any) -> str:
        return await self.set_network(network_id, key, quote(value))

    async def get_network(self, network_id: str, key: str) -> str:
        return await self.send(f"get_network {network_id} {key}")

    async def enable_network(self, network_id: str) -> str:
        return await self.send(f"enable_network {network_id}")

    async def disable_network(self, network_id: str) -> str:
        return await self.send(f"disable_network {network_id}")

    async def select_network(self, network_id: str) -> str:
        return await self.send(f"select_network {network_id}")

    async def remove_network(self, network_id: str) -> str:
        return await self.send(f"remove_network {network_id}")

    async def save_config(self) -> str:
        return await self.send("save_config")

    async def reconfigure(self) -> str:
        return await self.send("reconfigure")

    async def disconnect(self) -> str:
        return await self.send("disconnect")

    async def reassociate(self) -> str:
        return await self.send("reassociate")
