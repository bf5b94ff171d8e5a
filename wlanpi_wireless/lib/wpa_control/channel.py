import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .domain import ChannelClosed, CommandFailure, CommandTimeout

LINE_TERMINATOR = "\n"
RESYNC_COMMAND = "ping"
RESYNC_REPLY = "PONG"
FAILURE_REPLIES = ("FAIL", "UNKNOWN COMMAND")
_SECRET_SETTING = re.compile(
    r"^(?P<prefix>set_network\s+\S+\s+(?:psk|password|wep_key\d)\s+).*$",
    re.IGNORECASE | re.DOTALL,
)


def redact(command: str) -> str:
    """Masks secrets so commands can be logged and published."""
    return _SECRET_SETTING.sub(r"\g<prefix>***", command)


def is_failure_reply(reply: str) -> bool:
    first_line = reply.split("\n", 1)[0].strip()
    return any(
        first_line == marker or first_line.startswith(f"{marker}-")
        for marker in FAILURE_REPLIES
    )


@dataclass
class PendingCommand:
    command: str
    outcome: asyncio.Future
    multiline: bool = False
    # Resolve only on this line; anything before it is discarded
    until: Optional[str] = None
    lines: list[str] = field(default_factory=list)
    settle_handle: Optional[asyncio.TimerHandle] = None

    def complete(self):
        if not self.outcome.done():
            self.outcome.set_result("\n".join(self.lines))

    def cancel_settle(self):
        if self.settle_handle is not None:
            self.settle_handle.cancel()
            self.settle_handle = None


class CommandChannel:
    """
    Serializes commands onto wpa_cli's stdin and attributes reply lines.

    wpa_cli replies carry no request id, so only one command may be on the
    wire at a time: callers are admitted strictly in submission order and each
    reply line is handed to whichever command is currently pending.
    """

    def __init__(
        self,
        writer,
        interface: str = "wlan0",
        command_timeout: Optional[float] = 10.0,
        reply_settle: float = 0.1,
        on_sent: Optional[Callable[[str], None]] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {interface}")
        self.interface = interface
        self.command_timeout = command_timeout
        self.reply_settle = reply_settle
        self.on_sent = on_sent

        self._writer = writer
        self._lock = asyncio.Lock()
        self._pending: Optional[PendingCommand] = None
        self._close_error: Optional[ChannelClosed] = None

    @property
    def closed(self) -> bool:
        return self._close_error is not None

    @property
    def pending(self) -> Optional[str]:
        """Text of the command currently awaiting its reply, if any."""
        return self._pending.command if self._pending else None

    async def send(
        self, command: str, multiline: bool = False, timeout: Optional[float] = None
    ) -> str:
        """
        Sends a command and returns the reply text.

        Single-line commands resolve on the first reply line. With multiline,
        lines are collected until none has arrived for reply_settle seconds.
        :raises ChannelClosed: the channel closed before a reply arrived
        :raises CommandTimeout: no reply within the timeout
        :raises CommandFailure: wpa_supplicant rejected the command
        :raises ValueError: the command text contains a line break
        """
        if "\r" in command or "\n" in command:
            raise ValueError(
                f"Command for {self.interface} contains a line break: {redact(command)!r}"
            )
        if timeout is None:
            timeout = self.command_timeout
        self._raise_if_closed()
        async with self._lock:
            self._raise_if_closed()
            pending = PendingCommand(
                command=command,
                outcome=asyncio.get_running_loop().create_future(),
                multiline=multiline,
            )
            self._pending = pending
            try:
                await self._write(command)
                reply = await self._wait_for_reply(pending, timeout)
            finally:
                pending.cancel_settle()
                if self._pending is pending:
                    self._pending = None

        if is_failure_reply(reply):
            self.logger.warning(
                f"{self.interface}: '{redact(command)}' was rejected: {reply}"
            )
            raise CommandFailure(command, reply)
        return reply

    def deliver(self, line: str) -> bool:
        """
        Routes a non-event line to the pending command.

        Returns False when nothing is waiting for a reply.
        """
        pending = self._pending
        if pending is None or pending.outcome.done():
            return False
        if pending.until is not None:
            if line == pending.until:
                pending.complete()
            else:
                self.logger.debug(f"Discarding stale reply on {self.interface}: {line}")
            return True
        pending.lines.append(line)
        if not pending.multiline:
            pending.complete()
            return True
        pending.cancel_settle()
        pending.settle_handle = asyncio.get_running_loop().call_later(
            self.reply_settle, pending.complete
        )
        return True

    def close(self, error: Optional[ChannelClosed] = None):
        """Fails the pending command and every queued caller."""
        if self.closed:
            return
        self._close_error = error or ChannelClosed(
            f"Control channel for {self.interface} closed"
        )
        pending = self._pending
        if pending is not None:
            pending.cancel_settle()
            if not pending.outcome.done():
                pending.outcome.set_exception(self._close_error)
                # Retrieved by the waiting caller; avoid "never retrieved" noise
                # if that caller has already been cancelled.
                pending.outcome.exception()

    def _raise_if_closed(self):
        if self._close_error is not None:
            raise ChannelClosed(
                str(self._close_error), self._close_error.return_code
            ) from self._close_error

    async def _write(self, command: str):
        self.logger.debug(f"{self.interface} -> {redact(command)}")
        try:
            self._writer.write((command + LINE_TERMINATOR).encode("utf-8"))
            await self._writer.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self.close(ChannelClosed(f"Control channel for {self.interface} broke: {e}"))
            raise ChannelClosed(f"Unable to send '{redact(command)}': {e}") from e
        if self.on_sent is not None:
            self.on_sent(redact(command))

    async def _wait_for_reply(self, pending: PendingCommand, timeout: Optional[float]) -> str:
        if not timeout:
            return await pending.outcome
        try:
            return await asyncio.wait_for(pending.outcome, timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"{self.interface}: no reply to '{redact(pending.command)}' after {timeout}s"
            )
            pending.cancel_settle()
            await self._resync(timeout)
            raise CommandTimeout(pending.command, timeout)

    async def _resync(self, timeout: float):
        """
        Pings wpa_cli and discards every line up to the PONG.

        A reply to a timed-out command may still arrive; it must not be handed
        to the next caller. Runs while the caller still holds the lock.
        """
        resync = PendingCommand(
            command=RESYNC_COMMAND,
            outcome=asyncio.get_running_loop().create_future(),
            until=RESYNC_REPLY,
        )
        self._pending = resync
        try:
            await self._write(RESYNC_COMMAND)
            await asyncio.wait_for(resync.outcome, timeout)
            self.logger.debug(f"{self.interface}: back in step after timeout")
        except asyncio.TimeoutError:
            self.logger.warning(
                f"{self.interface}: no {RESYNC_REPLY} after {timeout}s; "
                f"a late reply may be credited to the next command"
            )
        except ChannelClosed as e:
            self.logger.debug(f"{self.interface}: closed while resyncing: {e}")
        finally:
            if self._pending is resync:
                self._pending = None
