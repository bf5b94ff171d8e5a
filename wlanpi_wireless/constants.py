import os

RUNTIME_ENV = os.environ.get("RUNTIME_ENV", "production")
IS_DEV = RUNTIME_ENV == "development"

CONFIG_DIR = os.environ.get("WLANPI_WIRELESS_CONFIG_DIR", "/etc/wlanpi-wireless")

DEFAULT_INTERFACE = "wlan0"
DEFAULT_WPA_CLI = "wpa_cli"
