import pytest

from wlanpi_wireless.lib.wpa_control import parse_status, resolve_mode
from wlanpi_wireless.lib.wpa_control.domain import Mode

STATUS_REPLY = """bssid=00:11:22:33:44:55
freq=5180
ssid=MyWifi
id=0
mode=station
pairwise_cipher=CCMP
key_mgmt=WPA2-PSK
wpa_state=COMPLETED
ip_address=192.168.1.20
address=dc:a6:32:00:00:01
uuid=6b9b5a7e-0000-0000-0000-000000000000"""


def test_parse_status():
    status = parse_status(STATUS_REPLY)
    assert status["ssid"] == "MyWifi"
    assert status["wpa_state"] == "COMPLETED"
    assert status["freq"] == "5180"
    assert len(status) == 11


def test_parse_status_skips_lines_without_a_key():
    assert parse_status("wpa_state=SCANNING\nSelected interface 'wlan0'\n=orphan\np2p_device_address=") == {
        "wpa_state": "SCANNING",
        "p2p_device_address": "",
    }


@pytest.mark.parametrize(
    "status, expected",
    [
        ({"mode": "station", "wpa_state": "COMPLETED"}, "station"),
        ({"mode": "AP", "wpa_state": "COMPLETED"}, "AP"),
        ({"wpa_state": "DISCONNECTED", "ip_address": "10.0.0.1"}, "ap"),
        ({"wpa_state": "disconnected", "ip_address": "10.0.0.1"}, "ap"),
        ({"wpa_state": "DISCONNECTED"}, ""),
        ({"wpa_state": "DISCONNECTED", "ip_address": ""}, ""),
        ({"wpa_state": "SCANNING"}, "unknown"),
        ({"wpa_state": "COMPLETED", "ip_address": "10.0.0.1"}, "unknown"),
        ({}, "unknown"),
    ],
)
def test_resolve_mode(status, expected):
    assert resolve_mode(status) == expected


def test_mode_values():
    assert {m.value for m in Mode} == {"", "station", "ap", "unknown"}


@pytest.mark.asyncio
async def test_status_and_mode_from_wpa_cli(wireless, supplicant):
    status = await wireless.status()
    assert status["wpa_state"] == "DISCONNECTED"
    assert await wireless.mode() == ""

    supplicant.status["ip_address"] = "192.168.42.1"
    assert await wireless.mode() == "ap"

    supplicant.status.update(wpa_state="COMPLETED", mode="station")
    assert await wireless.mode() == "station"
