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

import os

import yaml
from parameterized import parameterized

from synclient.api.constants import CLIENT_API_PREFIX
from synclient.config import ClientConfig, ConfigError, format_config_error
from synclient.config._base import Config
from synclient.types import JsonDict

from tests.unittest import TestCase
from tests.utils import TEST_HOMESERVER, TEST_USER, default_config


class ClientConfigTestCase(TestCase):
    def test_defaults(self) -> None:
        config = ClientConfig.from_dict(
            {"account": {"homeserver_url": TEST_HOMESERVER, "user_id": TEST_USER}}
        )

        self.assertObjectHasAttributes(
            {
                "homeserver_url": TEST_HOMESERVER,
                "user_id": TEST_USER,
                "access_token": None,
                "api_prefix": CLIENT_API_PREFIX,
                "app_service_user_id": None,
            },
            config.account,
        )
        self.assertEqual(config.http.request_timeout, 60)
        self.assertTrue(config.http.user_agent.startswith("synclient/"))
        self.assertEqual(config.ratelimiting.default_retry_after, 5)
        self.assertEqual(config.ratelimiting.max_retries, 5)
        self.assertObjectHasAttributes(
            {
                "timeout_ms": 30000,
                "full_state": False,
                "set_presence": None,
                "failed_sync_backoff": 10,
                "filter": {"room": {"timeline": {"limit": 50}}},
            },
            config.sync,
        )
        self.assertIsNone(config.logging.log_config)
        self.assertEqual(config.logging.level, "INFO")
        self.assertFalse(config.metrics.enable_metrics)
        self.assertEqual(config.metrics.port, 9101)

    def test_trailing_slash_is_stripped(self) -> None:
        config = ClientConfig.from_dict(
            default_config(account={"homeserver_url": TEST_HOMESERVER + "/"})
        )
        self.assertEqual(config.account.homeserver_url, TEST_HOMESERVER)

    def test_durations(self) -> None:
        config = ClientConfig.from_dict(
            default_config(
                http={"request_timeout": "2m"},
                ratelimiting={"default_retry_after": "500ms"},
                sync={"failed_sync_backoff": "3s"},
            )
        )
        self.assertEqual(config.http.request_timeout, 120)
        self.assertEqual(config.ratelimiting.default_retry_after, 0.5)
        self.assertEqual(config.sync.failed_sync_backoff, 3)

    @parameterized.expand(
        [
            ("missing user", {"account": {"homeserver_url": TEST_HOMESERVER}}, ["account"]),
            (
                "bad user",
                default_config(account={"user_id": "alice"}),
                ["account", "user_id"],
            ),
            (
                "relative homeserver",
                default_config(account={"homeserver_url": "matrix.test"}),
                ["account", "homeserver_url"],
            ),
            (
                "negative timeout",
                default_config(sync={"timeout_ms": -1}),
                ["sync", "timeout_ms"],
            ),
            (
                "bad presence",
                default_config(sync={"set_presence": "busy"}),
                ["sync", "set_presence"],
            ),
            (
                "section not a mapping",
                {**default_config(), "sync": ["timeout_ms"]},
                ["sync"],
            ),
            (
                "zero request timeout",
                default_config(http={"request_timeout": 0}),
                ["http", "request_timeout"],
            ),
        ]
    )
    def test_invalid(self, _name: str, config: JsonDict, path: list[str]) -> None:
        with self.assertRaises(ConfigError) as cm:
            ClientConfig.from_dict(config)
        self.assertEqual(list(cm.exception.path or []), path)

    def test_missing_log_config_file(self) -> None:
        with self.assertRaises(ConfigError):
            ClientConfig.from_dict(
                default_config(logging={"log_config": "/does/not/exist.yaml"})
            )

    def test_format_config_error(self) -> None:
        e = ConfigError("-1 is less than the minimum of 0", ("sync", "timeout_ms"))
        self.assertEqual(
            "".join(format_config_error(e)),
            "Error in configuration at 'sync.timeout_ms':\n"
            "  -1 is less than the minimum of 0",
        )

    @parameterized.expand(
        [(5, 5.0), (1.5, 1.5), ("250ms", 0.25), ("10s", 10.0), ("1h", 3600.0), ("7", 7.0)]
    )
    def test_parse_duration(self, value: int | float | str, expected: float) -> None:
        self.assertEqual(Config.parse_duration(value), expected)

    def test_parse_invalid_duration(self) -> None:
        with self.assertRaises(ConfigError):
            Config.parse_duration("soon")


class LoadConfigTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.dir = self.mktemp()
        os.mkdir(self.dir)

    def _write(self, name: str, contents: object) -> str:
        path = os.path.join(self.dir, name)
        with open(path, "w") as f:
            yaml.safe_dump(contents, f)
        return path

    def test_load_config(self) -> None:
        path = self._write("config.yaml", default_config(sync={"timeout_ms": 1000}))

        config = ClientConfig.load_config("test", ["-c", path])

        self.assertEqual(config.account.user_id, TEST_USER)
        self.assertEqual(config.sync.timeout_ms, 1000)

    def test_later_files_win(self) -> None:
        first = self._write("first.yaml", default_config(sync={"timeout_ms": 1000}))
        second = self._write("second.yaml", {"sync": {"full_state": True}})

        config = ClientConfig.load_config("test", ["-c", first, "-c", second])

        # the whole `sync` section is replaced
        self.assertTrue(config.sync.full_state)
        self.assertEqual(config.sync.timeout_ms, 30000)

    def test_not_a_mapping(self) -> None:
        path = self._write("config.yaml", ["account"])

        with self.assertRaises(ConfigError):
            ClientConfig.load_config("test", ["-c", path])
