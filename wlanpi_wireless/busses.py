import logging
import os

from pymessagebus import MessageBus

from wlanpi_wireless.lib.event_bus.middleware.logger import (
    LoggingMiddlewareConfig,
    get_logger_middleware,
)
from wlanpi_wireless.lib.logging_utils import env_level


def _env_on(name: str, default: str = "on") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


BUS_LOG_ENABLED = _env_on("WLANPI_WIRELESS_BUS_LOG", "on")
BUS_LOG_LEVEL = env_level("WLANPI_WIRELESS_BUS_LOG_LEVEL", logging.DEBUG)
BUS_LOG_PAYLOAD = _env_on("WLANPI_WIRELESS_BUS_LOG_PAYLOAD", "off")


def build_middlewares() -> list:
    middlewares = []
    if BUS_LOG_ENABLED:
        bus_logger = logging.getLogger("wlanpi_wireless.event_bus")
        logging_config = LoggingMiddlewareConfig(
            msg_received_level=BUS_LOG_LEVEL,
            msg_succeeded_level=BUS_LOG_LEVEL,
            msg_failed_level=logging.ERROR,
            include_msg_payload=BUS_LOG_PAYLOAD,
        )
        middlewares.append(get_logger_middleware(bus_logger, logging_config))
    return middlewares


message_bus = MessageBus(middlewares=build_middlewares())
