# Copyright 2017-present Kensho Technologies, LLC.
from typing import Any, Set, Tuple

from graphql import GraphQLList, GraphQLNamedType, GraphQLNonNull, GraphQLType


# A sequence of attribute names, walked one getattr() at a time to reach a data member
# that may live inside embedded attributes.
FieldPath = Tuple[str, ...]


def normalize_name(name: str) -> str:
    """Return the name with underscores removed and case folded, for fuzzy member matching."""
    return name.replace("_", "").casefold()


def names_match(left: str, right: str) -> bool:
    """Determine if two names are equal when ignoring case and underscores."""
    return normalize_name(left) == normalize_name(right)


def get_type_key(graphql_type: GraphQLType) -> Any:
    """Return a hashable key that is equal for structurally identical GraphQL types.

    Named types are unique within a schema and are used as their own key. Wrapping types are
    created anew for each field that uses them, so they are keyed by their structure instead.
    """
    if isinstance(graphql_type, GraphQLNonNull):
        return ("NonNull", get_type_key(graphql_type.of_type))
    elif isinstance(graphql_type, GraphQLList):
        return ("List", get_type_key(graphql_type.of_type))
    elif isinstance(graphql_type, GraphQLNamedType):
        return graphql_type
    else:
        raise AssertionError(f"Unreachable code reached: unexpected GraphQL type {graphql_type}")


def assert_set_equality(set1: Set[Any], set2: Set[Any]) -> None:
    """Assert that the sets are the same."""
    diff1 = set1.difference(set2)
    diff2 = set2.difference(set1)

    if diff1 or diff2:
        error_message_list = ["Expected sets to have the same keys."]
        if diff1:
            error_message_list.append(f"Keys in the first set but not the second: {diff1}.")
        if diff2:
            error_message_list.append(f"Keys in the second set but not the first: {diff2}.")
        raise AssertionError(" ".join(error_message_list))
