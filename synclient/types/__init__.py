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

from typing import Any, Mapping, TypeVar

from typing_extensions import TypeAlias

# JSON types. These could be made stronger, but will do for now.
# A "simple" (canonical) JSON value.
SimpleJsonValue: TypeAlias = str | int | bool | None
JsonValue: TypeAlias = dict[str, Any] | list | tuple | SimpleJsonValue
# A JSON-serialisable dict.
JsonDict: TypeAlias = dict[str, Any]
# A JSON-serialisable mapping; roughly speaking an immutable JSONDict.
# Useful when you have a TypedDict which isn't going to be mutated and you don't want
# to cast to JsonDict everywhere.
JsonMapping: TypeAlias = Mapping[str, Any]
# A JSON-serialisable object.
JsonSerializable: TypeAlias = object

# Collection[str] that does not include str itself; str being a Sequence[str]
# is very misleading and results in bugs.
StrCollection: TypeAlias = tuple[str, ...] | list[str] | set[str] | frozenset[str]

T = TypeVar("T")

# A (type, state_key) tuple.
StateKey: TypeAlias = tuple[str, str]

# A state map of type -> state_key -> value.
StateMap: TypeAlias = Mapping[StateKey, T]
MutableStateMap: TypeAlias = dict[StateKey, T]

__all__ = [
    "JsonDict",
    "JsonMapping",
    "JsonSerializable",
    "JsonValue",
    "MutableStateMap",
    "SimpleJsonValue",
    "StateKey",
    "StateMap",
    "StrCollection",
]
