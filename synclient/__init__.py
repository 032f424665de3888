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

"""This is an implementation of a Matrix client-server /sync client."""

import sys

# Check that we're not running on an unsupported Python version.
#
# Note that we use an (unneeded) variable here so that pyupgrade doesn't nuke the
# if-statement completely.
py_version = sys.version_info
if py_version < (3, 10):
    print("synclient requires Python 3.10 or above.")
    sys.exit(1)

# Twisted will fail to import when this file is executed to get the __version__
# during a fresh install. That's OK and subsequent calls will import it fine.
try:
    from twisted.internet import protocol
    from twisted.internet.protocol import Factory

    protocol.Factory.noisy = False
    Factory.noisy = False
except ImportError:
    pass

import synclient.util  # noqa: E402

__version__ = synclient.util.SYNCLIENT_VERSION
