import os

from pydantic import ValidationError

from wlanpi_wireless import constants
from wlanpi_wireless.lib.configuration.config_file import ConfigFile
from wlanpi_wireless.lib.configuration.schemas import WirelessConfig

WIRELESS_CONFIG_DIR = constants.CONFIG_DIR


class WirelessConfigFile(ConfigFile):
    def __init__(self):
        super().__init__(
            os.path.join(WIRELESS_CONFIG_DIR, "config.toml"),
            defaults=WirelessConfig().model_dump(exclude_none=True),
        )

    def load_or_create_defaults(self, allow_empty: bool = False):  # type: ignore[override]
        super().load_or_create_defaults(allow_empty=allow_empty)
        # Validate and normalize with schema; fall back to defaults on error
        try:
            cfg = WirelessConfig(**self.data)
            self.data = cfg.model_dump(exclude_none=True)
        except ValidationError:
            self.logger.warning(
                f"Invalid config in {self.config_file}; rewriting defaults", exc_info=True
            )
            self.create_defaults()
            self.save()

    @property
    def config(self) -> WirelessConfig:
        return WirelessConfig(**self.data)


if __name__ == "__main__":
    config_file = WirelessConfigFile()
    config_file.load_or_create_defaults()
    print(config_file.data)
