import copy
import json
import logging
import os
from collections import defaultdict
from os import PathLike
from typing import Any, Optional, Union

import toml

DECODE_ERRORS = (toml.decoder.TomlDecodeError, json.decoder.JSONDecodeError)


class ConfigFile:
    """
    A sectioned settings file, stored as toml (by extension) or json.

    ``data`` holds the loaded sections; ``defaults`` is copied into it whenever
    the file is missing, empty or unreadable.
    """

    def __init__(
        self,
        config_file: Union[str, PathLike] = "config.toml",
        defaults: Optional[dict[str, Any]] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {config_file}")

        self.config_file = os.fspath(config_file)
        self.defaults = defaults if defaults is not None else {}
        self.data: dict[str, dict] = defaultdict(dict)

    @property
    def _codec(self):
        return toml if self.config_file.endswith(".toml") else json

    def load(self):
        try:
            with open(self.config_file, "r") as f:
                self.data = self._codec.load(f)
        except FileNotFoundError as e:
            self.logger.error(f"Failed to load config file: {e}")
            raise
        except DECODE_ERRORS as e:
            self.logger.error(f"Unable to decode {self.config_file}: {e.msg}")
            raise
        self.logger.debug(f"Loaded {self.config_file}")

    def save(self):
        """Write the config next to its destination, then swap it into place."""
        directory = os.path.dirname(self.config_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_file = f"{self.config_file}.tmp"
        with open(tmp_file, "w") as f:
            self._codec.dump(self.data, f)
        os.replace(tmp_file, self.config_file)
        self.logger.debug(f"Saved {self.config_file}")

    def create_defaults(self):
        self.data = copy.deepcopy(self.defaults)

    def load_or_create_defaults(self, allow_empty: bool = False):
        try:
            self.load()
        except FileNotFoundError as e:
            self.logger.warning(f"Unable to load config, using defaults. Error: {e}")
            self.create_defaults()
            return
        except DECODE_ERRORS as e:
            self.logger.warning(
                f"Unable to decode existing config, using defaults. Error: {e.msg}"
            )
            self.create_defaults()
            return

        if not self.data and not allow_empty:
            self.logger.warning(f"{self.config_file} is empty; using defaults")
            self.create_defaults()
