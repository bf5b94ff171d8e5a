import asyncio
import logging
import typing as t
from typing import Optional

from wlanpi_wireless.lib.configuration.schemas import WirelessConfig
from wlanpi_wireless.lib.event_bus import EventBus
from wlanpi_wireless.lib.wpa_control import (
    Monitor,
    NetworkRecord,
    NetworkWorkflow,
    WpaCommands,
    resolve_mode,
)

from . import interface as interface_ops
from . import scanner
from .scanner import AccessPoint


class Wireless:
    """
    High level control of one wireless interface.

    Combines the wpa_cli monitor, the network workflows and the OS helpers
    for scanning and link state. Everything published by the monitor, plus
    scan_result, detect, ifup, ifdown and ifreboot, is available on ``events``.
    """

    def __init__(
        self,
        iface: Optional[str] = None,
        config: Optional[WirelessConfig] = None,
        message_bus=None,
    ):
        self.logger = logging.getLogger(__name__)
        self.config = config or WirelessConfig()
        self.iface = iface or self.config.WpaCli.interface
        self.logger.info(f"Initializing {__name__} for {self.iface}")

        self.monitor = Monitor(self.iface, config=self.config, message_bus=message_bus)
        self.commands = WpaCommands(self.monitor)
        self.networks = NetworkWorkflow(self.commands, interface=self.iface)

    @property
    def events(self) -> EventBus:
        return self.monitor.events

    async def open(self) -> list[NetworkRecord]:
        await self.monitor.open()
        try:
            return await self.networks.list_networks()
        except BaseException:
            await self.monitor.close()
            raise

    async def close(self):
        self.networks.invalidate()
        await self.monitor.close()

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def send(self, command: str, multiline: bool = False) -> str:
        """Raw wpa_cli command; the reply text is returned as-is."""
        return await self.commands.send(command, multiline=multiline)

    async def status(self) -> dict[str, str]:
        return await self.commands.status()

    async def mode(self) -> str:
        """One of "" (idle), "station", "ap" or "unknown"."""
        return resolve_mode(await self.status())

    async def scan(self) -> list[AccessPoint]:
        access_points = await scanner.scan(self.iface, tool=self.config.Interface.scan_tool)
        self.logger.debug(f"Found {len(access_points)} wireless networks at {self.iface}")
        self.events.emit("scan_result", access_points)
        return access_points

    async def request_scan(self) -> str:
        """
        Asks wpa_supplicant itself to scan.

        Returns once the scan is accepted; "scanning" and "scanned" follow on
        ``events`` and the results are read with scan_results().
        """
        return await self.commands.scan()

    async def scan_results(self) -> list[dict[str, str]]:
        return await self.commands.scan_results()

    async def list_interfaces(self) -> t.Any:
        return await interface_ops.list_interfaces()

    async def list_networks(self) -> list[NetworkRecord]:
        return await self.networks.list_networks()

    async def find_network_by_ssid(self, ssid: str) -> Optional[NetworkRecord]:
        return await self.networks.find_by_ssid(ssid)

    async def add_or_update_network(
        self, ssid: str, password: Optional[str] = None, options: Optional[dict] = None
    ) -> Optional[NetworkRecord]:
        return await self.networks.add_or_update_network(ssid, password, options)

    async def connect(
        self, ssid: str, password: Optional[str] = None, options: Optional[dict] = None
    ) -> Optional[NetworkRecord]:
        return await self.add_or_update_network(ssid, password, options)

    async def disconnect(self) -> str:
        return await self.commands.disconnect()

    async def reassociate(self) -> str:
        return await self.commands.reassociate()

    async def remove_network(self, ssid: str) -> Optional[str]:
        return await self.networks.remove_network(ssid)

    async def enable_network(self, ssid: str) -> Optional[str]:
        return await self.networks.enable_network(ssid)

    async def disable_network(self, ssid: str) -> Optional[str]:
        return await self.networks.disable_network(ssid)

    async def select_network(self, ssid: str) -> Optional[str]:
        return await self.networks.select_network(ssid)

    async def reload_configuration(self) -> str:
        reply = await self.commands.reconfigure()
        self.networks.invalidate()
        return reply

    async def save_configuration(self) -> str:
        return await self.commands.save_config()

    async def detect(self) -> Optional[dict[str, str]]:
        data = await interface_ops.detect()
        self.events.emit("detect", data)
        return data

    async def up(self):
        self.logger.debug(f"Bringing up {self.iface}")
        await interface_ops.set_link_state(self.iface, up=True)
        self.logger.debug(f"{self.iface} is up")
        self.events.emit("ifup")

    async def down(self):
        self.logger.debug(f"Bringing down {self.iface}")
        await interface_ops.set_link_state(self.iface, up=False)
        self.logger.debug(f"{self.iface} is down")
        self.events.emit("ifdown")

    async def reboot(self, delay: Optional[float] = None):
        if delay is None:
            delay = self.config.Interface.reboot_delay
        self.logger.debug(f"Rebooting {self.iface}")
        await self.down()
        await asyncio.sleep(delay)
        await self.up()
        self.logger.debug(f"{self.iface} rebooted")
        self.events.emit("ifreboot")


if __name__ == "__main__":
    from wlanpi_wireless.lib.logging_utils import setup_logging

    setup_logging(level=logging.DEBUG)

    async def main():
        async with Wireless("wlan0") as wireless:
            wireless.events.on("control", lambda tag, args: print(tag, args))
            print(await wireless.status())
            print(f"Mode: {await wireless.mode()!r}")
            for network in await wireless.list_networks():
                print(network)

    asyncio.run(main())
