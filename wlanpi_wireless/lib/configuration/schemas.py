from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from wlanpi_wireless.constants import DEFAULT_INTERFACE, DEFAULT_WPA_CLI


class WpaCliSettings(BaseModel):
    binary: str = Field(default=DEFAULT_WPA_CLI)
    interface: str = Field(default=DEFAULT_INTERFACE)
    ctrl_path: Optional[str] = Field(default=None)
    command_timeout: float = Field(default=10.0, ge=0)
    reply_settle: float = Field(default=0.1, gt=0)
    read_chunk_size: int = Field(default=4096, gt=0)

    @field_validator("ctrl_path", mode="before")
    def empty_to_none(cls, v):  # noqa: N805
        if v == "":
            return None
        return v


class InterfaceSettings(BaseModel):
    scan_tool: str = Field(default="iwlist")
    reboot_delay: float = Field(default=1.0, ge=0)


class WirelessConfig(BaseModel):
    WpaCli: WpaCliSettings = Field(default_factory=WpaCliSettings)
    Interface: InterfaceSettings = Field(default_factory=InterfaceSettings)
