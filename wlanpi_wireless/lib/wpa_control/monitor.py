import asyncio
import logging
from typing import Optional

from wlanpi_wireless import busses
from wlanpi_wireless.lib.configuration.schemas import WirelessConfig
from wlanpi_wireless.lib.event_bus import EventBus

from . import domain as wpa_domain
from .channel import CommandChannel
from .classifier import parse_control_event
from .domain import ChannelClosed, SubprocessSpawnFailure, WpaControlException
from .framer import LineFramer


class Monitor:
    """
    Owns an interactive wpa_cli process for one interface.

    Output lines are framed and classified: event lines are published on
    ``events`` (and the message bus), everything else is handed to the
    command channel as a reply fragment.

    Notifications on ``events``:
        open                        the channel is up
        data(line)                  every framed line
        command(text)               every command written (secrets masked)
        control(tag, args)          every event line
        scanning/scanned/connected/
        disconnected/invalidkey/
        terminating(args)           known event tags
        error(exc)                  wpa_cli wrote to stderr, or a listener failed
        close(return_code)          the channel is gone; nothing follows
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

        self.message_bus = (
            message_bus if message_bus is not None else busses.message_bus
        )

        self.events = EventBus(owner=self.iface)
        self.framer = LineFramer()
        self.process: Optional[asyncio.subprocess.Process] = None
        self.channel: Optional[CommandChannel] = None

        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._closing = False
        self._finalized = True
        self._output_seen = asyncio.Event()

    @property
    def is_open(self) -> bool:
        return self.process is not None and not self._finalized

    def command_line(self) -> list[str]:
        settings = self.config.WpaCli
        cmd = [settings.binary, "-i", self.iface]
        if settings.ctrl_path:
            cmd += ["-p", settings.ctrl_path]
        return cmd

    async def open(self):
        if self.is_open:
            return

        cmd = self.command_line()
        self.logger.info(f"Starting {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.logger.error(f"Unable to start wpa_cli for {self.iface}: {e}")
            self.events.emit("error", e)
            self._publish(
                wpa_domain.Messages.ChannelError(interface=self.iface, message=str(e))
            )
            raise SubprocessSpawnFailure(
                f"Unable to start {' '.join(cmd)}: {e}"
            ) from e

        settings = self.config.WpaCli
        self.process = process
        self.framer = LineFramer()
        self.channel = CommandChannel(
            process.stdin,
            interface=self.iface,
            command_timeout=settings.command_timeout,
            reply_settle=settings.reply_settle,
            on_sent=lambda text: self.events.emit("command", text),
        )
        self._closing = False
        self._finalized = False
        self._output_seen = asyncio.Event()
        self._reader_task = asyncio.create_task(self._read_stdout(process))
        self._stderr_task = asyncio.create_task(self._read_stderr(process))
        await self._drain_banner()
        if self._finalized:
            self.process = None
            raise ChannelClosed(
                f"wpa_cli for {self.iface} exited during startup", process.returncode
            )

        self.logger.info(f"wpa_cli for {self.iface} started with pid {process.pid}")
        self.events.emit("open")
        self._publish(
            wpa_domain.Messages.ChannelOpened(interface=self.iface, pid=process.pid)
        )

    async def close(self):
        """Stops wpa_cli. Pending and queued commands fail with ChannelClosed."""
        process = self.process
        if process is None:
            return
        self._closing = True
        self.logger.info(f"Closing wpa_cli for {self.iface}")
        if self.channel is not None:
            self.channel.close(ChannelClosed(f"Control channel for {self.iface} closed"))

        if process.returncode is None:
            try:
                process.terminate()
                try:
                    await asyncio.wait_for(process.wait(), timeout=2)
                except asyncio.TimeoutError:
                    self.logger.warning(f"wpa_cli for {self.iface} ignored SIGTERM")
                    process.kill()
            except ProcessLookupError:
                pass
        return_code = await process.wait()

        for task in (self._reader_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._reader_task = self._stderr_task = None

        self._finalize(return_code)
        self.process = None

    async def send(
        self, command: str, multiline: bool = False, timeout: Optional[float] = None
    ) -> str:
        if self.channel is None or not self.is_open:
            raise ChannelClosed(f"Control channel for {self.iface} is not open")
        return await self.channel.send(command, multiline=multiline, timeout=timeout)

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _read_stdout(self, process: asyncio.subprocess.Process):
        chunk_size = self.config.WpaCli.read_chunk_size
        try:
            while True:
                chunk = await process.stdout.read(chunk_size)
                if not chunk:
                    break
                self._output_seen.set()
                for line in self.framer.feed(chunk):
                    self._handle(line)
            for line in self.framer.flush():
                self._handle(line)
        except OSError as e:
            self.logger.error(f"Error reading from wpa_cli for {self.iface}: {e}")

        return_code = await process.wait()
        self.logger.info(f"wpa_cli for {self.iface} exited with {return_code}")
        self._finalize(return_code)

    async def _drain_banner(self):
        """
        Waits for wpa_cli's startup output to go quiet.

        The banner arrives with no command pending and is dropped; a command
        written before it is read would be handed the banner as its reply.
        """
        settings = self.config.WpaCli
        startup_timeout = settings.command_timeout or 10.0
        loop = asyncio.get_running_loop()
        deadline = loop.time() + startup_timeout
        try:
            await asyncio.wait_for(self._output_seen.wait(), startup_timeout)
            while loop.time() < deadline:
                self._output_seen.clear()
                await asyncio.wait_for(self._output_seen.wait(), settings.reply_settle)
        except asyncio.TimeoutError:
            pass

    async def _read_stderr(self, process: asyncio.subprocess.Process):
        while True:
            raw = await process.stderr.readline()
            if not raw:
                return
            message = raw.decode("utf-8", errors="replace").strip()
            if not message or self._closing:
                continue
            self.logger.warning(f"wpa_cli for {self.iface} reported: {message}")
            self.events.emit("error", WpaControlException(message))
            self._publish(
                wpa_domain.Messages.ChannelError(interface=self.iface, message=message)
            )

    def _handle(self, line: str):
        if self._closing or self._finalized:
            return
        self.logger.debug(f"{self.iface} <- {line}")
        self.events.emit("data", line)

        event = parse_control_event(line)
        if event is None:
            if not self.channel.deliver(line):
                self.logger.debug(f"Dropping unattributed line on {self.iface}: {line}")
            return

        self.events.emit("control", event.tag, dict(event.args))
        self._publish(
            wpa_domain.Messages.ControlEvent(
                interface=self.iface, tag=event.tag, args=event.args
            )
        )
        kind = event.kind
        if kind is None:
            return
        self.logger.debug(f"Event {kind.value} on {self.iface}: {event.args}")
        self.events.emit(kind.value, dict(event.args))
        self._publish(
            wpa_domain.SEMANTIC_MESSAGES[kind](
                interface=self.iface, tag=event.tag, args=event.args
            )
        )

    def _finalize(self, return_code: Optional[int]):
        if self._finalized:
            return
        self._finalized = True
        self._closing = True
        self._output_seen.set()
        if self.channel is not None:
            self.channel.close(
                ChannelClosed(
                    f"wpa_cli for {self.iface} exited with {return_code}", return_code
                )
            )
        self.events.emit("close", return_code)
        self._publish(
            wpa_domain.Messages.ChannelClosed(
                interface=self.iface, return_code=return_code
            )
        )
        self.events.remove_all_listeners()

    def _publish(self, message):
        try:
            self.message_bus.handle(message)
        except Exception:
            self.logger.exception(f"Message bus handler failed for {message}")
