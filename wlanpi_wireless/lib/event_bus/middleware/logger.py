import logging
import typing as t

# Heavily inspired by the Tactician Logger Middleware :-)
# @link https://github.com/thephpleague/tactician-logger

# pylint: disable=too-few-public-methods


class LoggingMiddlewareConfig(t.NamedTuple):
    msg_received_level: int = logging.DEBUG
    msg_succeeded_level: int = logging.DEBUG
    msg_failed_level: int = logging.ERROR
    include_msg_payload: bool = False


def _describe(message: object, include_payload: bool) -> str:
    description = type(message).__qualname__
    interface = getattr(message, "interface", None)
    if interface:
        description += f" on {interface}"
    if include_payload:
        description += f" with payload: {message}"
    return description


def get_logger_middleware(
    logger: logging.Logger, config: t.Optional[LoggingMiddlewareConfig] = None
) -> t.Callable:
    middleware_config: LoggingMiddlewareConfig = config or LoggingMiddlewareConfig()

    def logger_middleware(message: object, next_: t.Callable) -> object:
        description = _describe(message, middleware_config.include_msg_payload)
        logger.log(
            middleware_config.msg_received_level, f"Message received: {description}"
        )

        try:
            result = next_(message)
        except Exception:
            logger.log(
                middleware_config.msg_failed_level,
                f"Message failed: {description}",
                exc_info=True,
            )
            raise

        logger.log(
            middleware_config.msg_succeeded_level, f"Message succeeded: {description}"
        )
        return result

    return logger_middleware
