import logging
import re
import typing as t
from dataclasses import dataclass

from .commands import WpaCommands, quote
from .domain import CommandFailure, NetworkRecord, NetworkStepFailure

_HEX = re.compile(r"^[0-9a-fA-F]+$")
# Raw 256-bit PSK; anything else is a passphrase and must be quoted.
PSK_HEX_LENGTH = 64
WEP_HEX_LENGTHS = (10, 26, 32)


@dataclass(frozen=True)
class NetworkSetting:
    key: str
    value: t.Any
    quoted: bool = False

    @property
    def wire_value(self) -> str:
        return quote(self.value) if self.quoted else str(self.value)

    def describe(self) -> str:
        if self.key in ("psk", "wep_key0"):
            return f"{self.key}=***"
        return f"{self.key}={self.wire_value}"


def _is_hex(value: str, *lengths: int) -> bool:
    return len(value) in lengths and bool(_HEX.match(value))


def network_settings(
    ssid: str, password: t.Optional[str] = None, options: t.Optional[dict] = None
) -> list[NetworkSetting]:
    """
    Computes the ordered set_network steps for a network.

    WPA-PSK when a password is given, open otherwise. With auth "WEP" the
    password is installed as WEP key 0 instead. scan_ssid is always set so
    hidden networks are found too.
    :raises ValueError: ssid or password contains a line break
    """
    for name, value in (("ssid", ssid), ("password", password)):
        if value and ("\r" in value or "\n" in value):
            raise ValueError(f"Network {name} must not contain a line break")
    auth = (options or {}).get("auth")
    settings = [NetworkSetting("ssid", ssid, quoted=True)]
    if password and auth != "WEP":
        settings.append(
            NetworkSetting("psk", password, quoted=not _is_hex(password, PSK_HEX_LENGTH))
        )
        settings.append(NetworkSetting("key_mgmt", "WPA-PSK"))
    else:
        settings.append(NetworkSetting("key_mgmt", "NONE"))
        if auth == "WEP" and password:
            settings.append(NetworkSetting("wep_tx_keyidx", 0))
            settings.append(
                NetworkSetting(
                    "wep_key0", password, quoted=not _is_hex(password, *WEP_HEX_LENGTHS)
                )
            )
    settings.append(NetworkSetting("scan_ssid", 1))
    return settings


class NetworkWorkflow:
    """
    Multi-step network lifecycle operations on top of primitive commands.

    Keeps a cached copy of the configured networks. The cache is filled on
    first lookup, replaced by every list_networks() call and dropped after
    any mutation; lookups never refresh a populated cache by themselves.
    """

    def __init__(self, commands: WpaCommands, interface: str = "wlan0"):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {interface}")
        self.commands = commands
        self.interface = interface
        self._networks: t.Optional[list[NetworkRecord]] = None

    @property
    def cached_networks(self) -> t.Optional[list[NetworkRecord]]:
        return list(self._networks) if self._networks is not None else None

    def invalidate(self):
        self._networks = None

    async def list_networks(self) -> list[NetworkRecord]:
        self._networks = await self.commands.list_networks()
        return list(self._networks)

    async def add_network(self) -> str:
        network_id = await self.commands.add_network()
        self.invalidate()
        self.logger.debug(f"Added network {network_id} on {self.interface}")
        return network_id

    async def find_by_ssid(self, ssid: str) -> t.Optional[NetworkRecord]:
        if self._networks is None:
            await self.list_networks()
        return next((n for n in self._networks if n.ssid == ssid), None)

    async def add_or_update_network(
        self,
        ssid: str,
        password: t.Optional[str] = None,
        options: t.Optional[dict] = None,
    ) -> t.Optional[NetworkRecord]:
        """
        Creates or rewrites the network for ssid, then enables, selects and saves it.

        Steps run one at a time in a fixed order. A rejected step raises
        NetworkStepFailure and leaves earlier steps applied; the caller decides
        whether to remove the partially configured network.
        :return: the network as listed afterwards, or None if it is not listed
        """
        settings = network_settings(ssid, password, options)
        existing = await self.find_by_ssid(ssid)
        network_id = existing.id if existing else await self.add_network()
        self.logger.info(
            f"Configuring network {network_id} ({ssid}) on {self.interface}: "
            f"{', '.join(s.describe() for s in settings)}"
        )

        try:
            for setting in settings:
                await self._step(
                    network_id,
                    f"set_network {setting.describe()}",
                    self.commands.set_network(network_id, setting.key, setting.wire_value),
                )
            await self._step(
                network_id, "enable_network", self.commands.enable_network(network_id)
            )
            await self._step(
                network_id, "select_network", self.commands.select_network(network_id)
            )
            await self._step(network_id, "save_config", self.commands.save_config())
        finally:
            self.invalidate()

        networks = await self.list_networks()
        return next((n for n in networks if n.matches_ssid(ssid)), None)

    async def remove_network(self, ssid: str) -> t.Optional[str]:
        return await self._by_ssid(ssid, "remove", self.commands.remove_network)

    async def enable_network(self, ssid: str) -> t.Optional[str]:
        return await self._by_ssid(ssid, "enable", self.commands.enable_network)

    async def disable_network(self, ssid: str) -> t.Optional[str]:
        return await self._by_ssid(ssid, "disable", self.commands.disable_network)

    async def select_network(self, ssid: str) -> t.Optional[str]:
        return await self._by_ssid(ssid, "select", self.commands.select_network)

    async def _by_ssid(
        self, ssid: str, action: str, command: t.Callable[[str], t.Awaitable[str]]
    ) -> t.Optional[str]:
        """Runs command against the network named ssid. None means no such network."""
        network = await self.find_by_ssid(ssid)
        if network is None:
            self.logger.info(
                f"No configured network {ssid!r} on {self.interface}; skipping {action}"
            )
            return None
        reply = await command(network.id)
        self.invalidate()
        return reply

    @staticmethod
    async def _step(network_id: str, step: str, operation: t.Awaitable[str]) -> str:
        try:
            return await operation
        except CommandFailure as e:
            raise NetworkStepFailure(network_id, step, e) from e
