# Copyright 2017-present Kensho Technologies, LLC.
"""Resolver types for commonly used custom scalars. Custom types may be used instead."""
from datetime import datetime, timezone
import json
from typing import Any, Optional

# C-based module confuses pylint, which is why we disable the check below.
from ciso8601 import parse_rfc3339  # pylint: disable=no-name-in-module

from .decode import Unmarshaler


class ID(Unmarshaler):
    """Resolver type for GraphQL's ID scalar type.

    The wrapped value may be of any type, and is serialized as a string.
    """

    __slots__ = ("value",)

    def __init__(self, value: Any = None) -> None:
        """Initialize the ID with the given value."""
        self.value = value

    def __repr__(self) -> str:
        """Return a representation of the ID and its value."""
        return f"ID({self.value!r})"

    def __str__(self) -> str:
        """Return the string form of the ID, as it is serialized."""
        return str(self.value)

    def __eq__(self, other: Any) -> bool:
        """Compare IDs by their values."""
        if not isinstance(other, ID):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash IDs by their values."""
        return hash(self.value)

    def implements_graphql_type(self, name: str) -> bool:
        """Implement the ID scalar type only."""
        return name == "ID"

    def unmarshal_graphql(self, value: Any) -> None:
        """Load an ID from its string or integer input value."""
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError(f"Wrong type for ID: {type(value).__name__}")
        self.value = value

    def marshal_json(self) -> str:
        """Serialize the ID as a JSON string."""
        return json.dumps(str(self.value))


class Time(Unmarshaler):
    """Resolver type for a Time scalar, holding a timezone-aware datetime.

    Input values may be RFC 3339 strings, Unix timestamps in seconds, or datetime objects.
    Values are serialized as RFC 3339 strings.
    """

    __slots__ = ("value",)

    def __init__(self, value: Optional[datetime] = None) -> None:
        """Initialize the Time with the given datetime."""
        self.value = value

    def __repr__(self) -> str:
        """Return a representation of the Time and its value."""
        return f"Time({self.value!r})"

    def __eq__(self, other: Any) -> bool:
        """Compare Times by their values."""
        if not isinstance(other, Time):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash Times by their values."""
        return hash(self.value)

    def implements_graphql_type(self, name: str) -> bool:
        """Implement the Time scalar type only."""
        return name == "Time"

    def unmarshal_graphql(self, value: Any) -> None:
        """Load a Time from its input value."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                raise ValueError(
                    f"Expected a timezone-aware datetime object, got {value} instead, since "
                    f"assuming a timezone would result in an implicit loss of precision."
                )
            self.value = value
        elif isinstance(value, str):
            # This will raise ValueError in case of bad RFC 3339 formatting.
            self.value = parse_rfc3339(value)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            self.value = datetime.fromtimestamp(value, tz=timezone.utc)
        else:
            raise ValueError(f"Wrong type for Time: {type(value).__name__}")

    def marshal_json(self) -> str:
        """Serialize the Time as a JSON string in RFC 3339 format."""
        if self.value is None:
            return json.dumps(None)
        return json.dumps(self.value.isoformat())
