"""
Pytest configuration and shared fixtures for wlanpi-wireless tests
"""
import asyncio
import logging
from typing import Callable, Optional

import pytest
import pytest_asyncio
from pymessagebus import MessageBus

from wlanpi_wireless.lib.configuration.schemas import WirelessConfig
from wlanpi_wireless.lib.logging_utils import setup_logging
from wlanpi_wireless.lib.wireless import Wireless
from wlanpi_wireless.lib.wpa_control import Monitor

BANNER = (
    "wpa_cli v2.10\n"
    "Copyright (c) 2004-2022, Jouni Malinen <j@w1.fi> and contributors\n"
    "\n"
    "Selected interface 'wlan0'\n"
    "\n"
    "Interactive mode\n"
    "\n"
    "> "
)


class FakeWpaSupplicant:
    """Answers wpa_cli commands from an in-memory network table."""

    def __init__(self):
        self.networks: dict[int, dict[str, str]] = {}
        self.current: Optional[int] = None
        self.next_id = 0
        self.saved = 0
        self.status = {
            "wpa_state": "DISCONNECTED",
            "address": "dc:a6:32:00:00:01",
            "uuid": "6b9b5a7e-0000-0000-0000-000000000000",
        }
        # Command names answered with FAIL, or never answered at all
        self.fail_on: set[str] = set()
        self.silent: set[str] = set()
        self.quote_listed_ssids = False
        self.scans = 0
        self.reassociations = 0
        # scan_results rows: bssid, frequency, signal, flags, ssid
        self.bss: list[tuple[str, ...]] = []

    def add_existing(self, ssid: str, disabled: bool = False) -> str:
        network_id = self._cmd_add_network()
        self.networks[int(network_id)]["ssid"] = f'"{ssid}"'
        self.networks[int(network_id)]["disabled"] = "1" if disabled else "0"
        return network_id

    def __call__(self, command: str) -> Optional[str]:
        parts = command.split(" ", 3)
        name = parts[0]
        if name in self.silent:
            return None
        if name in self.fail_on:
            return "FAIL"
        handler = getattr(self, f"_cmd_{name}", None)
        if handler is None:
            return "UNKNOWN COMMAND"
        return handler(*parts[1:])

    def _network(self, network_id: str) -> Optional[dict[str, str]]:
        if not network_id.isdigit():
            return None
        return self.networks.get(int(network_id))

    def _cmd_ping(self):
        return "PONG"

    def _cmd_status(self):
        return "\n".join(f"{key}={value}" for key, value in self.status.items())

    def _cmd_list_networks(self):
        rows = ["network id / ssid / bssid / flags"]
        for network_id, network in sorted(self.networks.items()):
            ssid = network.get("ssid", "")
            if not self.quote_listed_ssids:
                ssid = ssid.strip('"')
            flags = ""
            if network_id == self.current:
                flags = "[CURRENT]"
            elif network.get("disabled") == "1":
                flags = "[DISABLED]"
            rows.append(f"{network_id}\t{ssid}\tany\t{flags}")
        return "\n".join(rows)

    def _cmd_add_network(self):
        network_id = self.next_id
        self.next_id += 1
        self.networks[network_id] = {"ssid": "", "disabled": "1"}
        return str(network_id)

    def _cmd_set_network(self, network_id, key, value):
        network = self._network(network_id)
        if network is None:
            return "FAIL"
        network[key] = value
        return "OK"

    def _cmd_get_network(self, network_id, key):
        network = self._network(network_id)
        if network is None or key not in network:
            return "FAIL"
        return network[key]

    def _cmd_enable_network(self, network_id):
        network = self._network(network_id)
        if network is None:
            return "FAIL"
        network["disabled"] = "0"
        return "OK"

    def _cmd_disable_network(self, network_id):
        network = self._network(network_id)
        if network is None:
            return "FAIL"
        network["disabled"] = "1"
        return "OK"

    def _cmd_select_network(self, network_id):
        if self._network(network_id) is None:
            return "FAIL"
        self.current = int(network_id)
        return "OK"

    def _cmd_remove_network(self, network_id):
        if self._network(network_id) is None:
            return "FAIL"
        del self.networks[int(network_id)]
        if self.current == int(network_id):
            self.current = None
        return "OK"

    def _cmd_save_config(self):
        self.saved += 1
        return "OK"

    def _cmd_reconfigure(self):
        return "OK"

    def _cmd_disconnect(self):
        self.status["wpa_state"] = "DISCONNECTED"
        return "OK"

    def _cmd_scan(self):
        self.scans += 1
        return "OK"

    def _cmd_scan_results(self):
        rows = ["bssid / frequency / signal level / flags / ssid"]
        rows += ["\t".join(row) for row in self.bss]
        return "\n".join(rows)

    def _cmd_reassociate(self):
        self.reassociations += 1
        return "OK"


class FakeStdin:
    def __init__(self, process: "FakeWpaCliProcess"):
        self.process = process
        self.commands: list[str] = []
        self.broken = False

    def write(self, data: bytes):
        if self.broken:
            raise BrokenPipeError("Broken pipe")
        for command in data.decode("utf-8").splitlines():
            self.commands.append(command)
            self.process.on_command(command)

    async def drain(self):
        if self.broken:
            raise BrokenPipeError("Broken pipe")


class FakeWpaCliProcess:
    """Stands in for asyncio.subprocess.Process running ``wpa_cli -i wlan0``."""

    def __init__(self, args, responder: Optional[Callable[[str], Optional[str]]] = None):
        self.args = list(args)
        self.pid = 4242
        self.returncode: Optional[int] = None
        self.responder = responder
        self.stdin = FakeStdin(self)
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self._exited = asyncio.Event()
        self.emit(BANNER)

    @property
    def commands(self) -> list[str]:
        return self.stdin.commands

    def on_command(self, command: str):
        if self.responder is None:
            return
        reply = self.responder(command)
        if reply is not None:
            self.emit(f"{reply}\n> ")

    def emit(self, text: str):
        if self.returncode is None:
            self.stdout.feed_data(text.encode("utf-8"))

    def emit_event(self, event: str, priority: int = 3):
        self.emit(f"\r<{priority}>{event}\n> ")

    def emit_stderr(self, text: str):
        if self.returncode is None:
            self.stderr.feed_data(text.encode("utf-8"))

    def exit(self, code: int = 0):
        if self.returncode is not None:
            return
        self.returncode = code
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()

    def terminate(self):
        self.exit(-15)

    def kill(self):
        self.exit(-9)

    async def wait(self) -> int:
        await self._exited.wait()
        return self.returncode


async def settle(delay: float = 0.05):
    """Lets the monitor's reader task catch up with fed output."""
    await asyncio.sleep(delay)


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests with appropriate levels"""
    setup_logging(level=logging.INFO)


@pytest.fixture
def test_interface_name() -> str:
    """Default test interface name"""
    return "wlan0"


@pytest.fixture
def test_config(test_interface_name) -> WirelessConfig:
    return WirelessConfig(
        WpaCli={
            "interface": test_interface_name,
            "command_timeout": 1.0,
            "reply_settle": 0.02,
        }
    )


@pytest.fixture
def message_bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def supplicant() -> FakeWpaSupplicant:
    return FakeWpaSupplicant()


@pytest.fixture
def fake_wpa_cli(monkeypatch, supplicant) -> list[FakeWpaCliProcess]:
    """Replaces process creation; every spawned fake is appended to the returned list."""
    spawned: list[FakeWpaCliProcess] = []

    async def create_subprocess_exec(*cmd, **kwargs):
        process = FakeWpaCliProcess(cmd, responder=supplicant)
        spawned.append(process)
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    return spawned


@pytest_asyncio.fixture
async def monitor(fake_wpa_cli, test_config, message_bus):
    """An open Monitor talking to the fake supplicant"""
    monitor = Monitor(config=test_config, message_bus=message_bus)
    await monitor.open()
    yield monitor
    await monitor.close()


@pytest_asyncio.fixture
async def wireless(fake_wpa_cli, test_config, message_bus):
    """An open Wireless facade talking to the fake supplicant"""
    wireless = Wireless(config=test_config, message_bus=message_bus)
    await wireless.open()
    yield wireless
    await wireless.close()
