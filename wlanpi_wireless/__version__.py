__title__ = "wlanpi_wireless"
__description__ = (
    "Drives wpa_supplicant through an interactive wpa_cli control channel, exposing"
    " its events and commands as an asyncio API with network configuration workflows."
)
__url__ = "https://github.com/rgnets/wlanpi-wireless"
__author__ = "Michael Ketchel"
__author_email__ = "mdk@rgnets.com"
__version__ = "0.1.0"
__status__ = "alpha"
__license__ = "BSD-3-Clause"
__license_url__ = "https://opensource.org/licenses/BSD-3-Clause"
