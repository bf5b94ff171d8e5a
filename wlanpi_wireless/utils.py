import asyncio
import logging
from typing import Any, Optional

from wlanpi_wireless.models.command_result import CommandResult
from wlanpi_wireless.models.runcommand_error import RunCommandError

logger = logging.getLogger(__name__)


async def run_command_async(
    cmd: list, raise_on_fail=True, timeout: Optional[float] = None
) -> CommandResult:
    """Run a single CLI command in a subprocess without blocking the event loop"""
    logger.debug(f"Running command: {cmd}")
    process = await asyncio.create_subprocess_exec(
        *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise RunCommandError(f"Timed out after {timeout}s: {cmd}", -1)

    result = CommandResult(
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
        process.returncode,
    )
    if raise_on_fail and not result.success:
        raise RunCommandError(result.stderr, result.return_code)
    return result


async def get_interface_ip_addr(interface: Optional[str] = None) -> Any:
    cmd: list[str] = "ip -j addr show".split(" ")
    if interface is not None and interface.strip() != "":
        cmd.append(interface.strip())
    return (await run_command_async(cmd)).output_from_json()
