#
# This file is licensed under the Affero General Public License (AGPL) version 3.
#
# Copyright (C) 2026 New Vector, Ltd
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# See the GNU Affero General Public License for more details:
# <https://www.gnu.org/licenses/agpl-3.0.html>.
#
#

import argparse
import logging
from typing import Any, ClassVar, Iterable, Iterator, TypeVar

import yaml

from synclient.types import JsonDict, StrCollection

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Represents a problem parsing the configuration

    Args:
        msg:  A textual description of the error.
        path: Where appropriate, an indication of where in the configuration
           the problem lies.
    """

    def __init__(self, msg: str, path: StrCollection | None = None):
        super().__init__(msg)
        self.msg = msg
        self.path = path


def format_config_error(e: ConfigError) -> Iterator[str]:
    """
    Formats a config error neatly

    The idea is to format the immediate error, plus the "causes" of those errors,
    hopefully in a way that makes sense to the user. For example:

        Error in configuration at 'sync.timeout_ms':
          -1 is less than the minimum of 0

    Args:
        e: the error to be formatted

    Returns: An iterator which yields string fragments to be formatted
    """
    yield "Error in configuration"

    if e.path:
        yield " at '%s'" % (".".join(e.path),)

    yield ":\n  %s" % (e.msg,)

    parent_e = e.__cause__
    indent = 1
    while parent_e:
        indent += 1
        yield ":\n%s%s" % ("  " * indent, str(parent_e))
        parent_e = parent_e.__cause__


class Config:
    """
    A configuration section, containing configuration keys and values.

    Attributes:
        section: The section title of this config object, such as
            "sync" or "http". This is used as the parent key under which the
            section's settings live in the config file, and as the attribute name
            of the section on the root config.
    """

    section: ClassVar[str]

    def __init__(self, root_config: "RootConfig"):
        self.root = root_config

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        """Read the settings for this section.

        Args:
            config: the contents of this section of the config file (an empty dict
                if the section is absent).
        """
        raise NotImplementedError()

    @staticmethod
    def parse_duration(value: int | float | str) -> float:
        """Convert a duration to seconds.

        Bare numbers are taken to be seconds; strings may carry a unit suffix of
        "ms", "s", "m" or "h", e.g. "500ms" or "2m".

        Raises:
            ConfigError if the value cannot be parsed.
        """
        if isinstance(value, bool):
            raise ConfigError("Invalid duration: %r" % (value,))
        if isinstance(value, (int, float)):
            return float(value)

        sizes = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}
        value = value.strip()
        for suffix in ("ms", "s", "m", "h"):
            if value.endswith(suffix):
                number = value[: -len(suffix)]
                try:
                    return float(number) * sizes[suffix]
                except ValueError:
                    break
        try:
            return float(value)
        except ValueError:
            raise ConfigError("Invalid duration: %r" % (value,))


TRootConfig = TypeVar("TRootConfig", bound="RootConfig")


class RootConfig:
    """
    Holder of an application's configuration.

    What configuration this object holds is defined by `config_classes`, a list
    of Config classes that will be instantiated and given the contents of a
    configuration file to read. They can then be accessed on this class by their
    section name, defined in the Config or dynamically set to be the name of the
    class, lower-cased and with "Config" removed.
    """

    config_classes: ClassVar[list[type[Config]]] = []

    def __init__(self) -> None:
        for config_class in self.config_classes:
            if getattr(config_class, "section", None) is None:
                raise ValueError("%r requires a section name" % (config_class,))

            try:
                conf = config_class(self)
            except Exception as e:
                raise Exception("Failed making %s: %r" % (config_class.section, e))
            setattr(self, config_class.section, conf)

    def parse_config_dict(self, config_dict: JsonDict, **kwargs: Any) -> None:
        """Read the information from the config dict into this Config object.

        Args:
            config_dict: Configuration data, as read from the yaml
        """
        for config_class in self.config_classes:
            section = config_dict.get(config_class.section)
            if section is None:
                section = {}
            elif not isinstance(section, dict):
                raise ConfigError(
                    "Expected a mapping", (config_class.section,)
                )
            getattr(self, config_class.section).read_config(section, **kwargs)

    @classmethod
    def from_dict(cls: type[TRootConfig], config_dict: JsonDict) -> TRootConfig:
        """Build a config object straight from a dict, as used by tests and by
        applications which embed the client."""
        obj = cls()
        obj.parse_config_dict(config_dict)
        return obj

    @classmethod
    def load_config(
        cls: type[TRootConfig], description: str, argv: list[str]
    ) -> TRootConfig:
        """Parse the commandline and config files

        Args:
            description: the name of the application, for the usage message.
            argv: the commandline arguments, usually `sys.argv[1:]`.

        Returns:
            Config object.
        """
        config_parser = argparse.ArgumentParser(description=description)
        config_parser.add_argument(
            "-c",
            "--config-path",
            action="append",
            metavar="CONFIG_FILE",
            required=True,
            help="Specify config file. Can be given multiple times; later files"
            " override earlier ones.",
        )
        config_args = config_parser.parse_args(argv)

        config_dict = read_config_files(config_args.config_path)
        return cls.from_dict(config_dict)


def read_config_files(config_files: Iterable[str]) -> dict[str, Any]:
    """Read the config files into a dict

    Top-level keys of later files replace those of earlier ones.

    Args:
        config_files: A list of the config files to read

    Returns:
        The configuration dictionary.
    """
    specified_config = {}
    for config_file in config_files:
        with open(config_file) as file_stream:
            try:
                yaml_config = yaml.safe_load(file_stream)
            except yaml.YAMLError as e:
                raise ConfigError(
                    "Error parsing config file %s" % (config_file,)
                ) from e

        if not isinstance(yaml_config, dict):
            raise ConfigError(
                "File %s is empty or doesn't parse into a key-value map."
                % (config_file,)
            )

        specified_config.update(yaml_config)

    return specified_config
