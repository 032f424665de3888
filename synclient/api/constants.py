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

"""Contains constants used by the Matrix client-server API."""

from typing import Final

# The default path prefix of the client-server API.
CLIENT_API_PREFIX: Final = "/_matrix/client/v3"


class Membership:
    """Represents the membership states of a user in a room."""

    INVITE: Final = "invite"
    JOIN: Final = "join"
    KNOCK: Final = "knock"
    LEAVE: Final = "leave"
    BAN: Final = "ban"
    LIST: Final = frozenset((INVITE, JOIN, KNOCK, LEAVE, BAN))


class PresenceState:
    """Represents the presence state of a user."""

    OFFLINE: Final = "offline"
    UNAVAILABLE: Final = "unavailable"
    ONLINE: Final = "online"
    LIST: Final = frozenset((OFFLINE, UNAVAILABLE, ONLINE))


class LoginType:
    PASSWORD: Final = "m.login.password"
    TOKEN: Final = "m.login.token"
    APPLICATION_SERVICE: Final = "m.login.application_service"


class EventTypes:
    Member: Final = "m.room.member"
    Create: Final = "m.room.create"
    Tombstone: Final = "m.room.tombstone"
    JoinRules: Final = "m.room.join_rules"
    PowerLevels: Final = "m.room.power_levels"
    Aliases: Final = "m.room.aliases"
    Redaction: Final = "m.room.redaction"
    CanonicalAlias: Final = "m.room.canonical_alias"
    Encrypted: Final = "m.room.encrypted"
    RoomAvatar: Final = "m.room.avatar"
    Name: Final = "m.room.name"
    Topic: Final = "m.room.topic"
    Message: Final = "m.room.message"
    Sticker: Final = "m.sticker"

    Presence: Final = "m.presence"
    Typing: Final = "m.typing"
    Receipt: Final = "m.receipt"


class AccountDataTypes:
    DIRECT: Final = "m.direct"
    IGNORED_USER_LIST: Final = "m.ignored_user_list"
    PUSH_RULES: Final = "m.push_rules"
    FULLY_READ: Final = "m.fully_read"


class MessageTypes:
    TEXT: Final = "m.text"
    NOTICE: Final = "m.notice"
    EMOTE: Final = "m.emote"
