# Copyright 2020-present Kensho Technologies, LLC.
"""Capability implemented by resolver types that back custom GraphQL scalars."""
from abc import ABCMeta, abstractmethod
from typing import Any

from .exceptions import MissingCapabilityError
from .type_inspection import get_type_description


class Unmarshaler(metaclass=ABCMeta):
    """Base class for resolver types that implement one or more custom GraphQL scalar types.

    A custom scalar in the schema may only be bound to a resolver type that is an Unmarshaler
    and answers True to implements_graphql_type() for the scalar's name. Subclassing is not
    required: any class defining both methods below is considered an Unmarshaler, in the same
    way collections.abc recognizes containers.

    Implementations must be constructible without arguments, since argument values are
    unmarshaled into a fresh instance of the resolver type.
    """

    __slots__ = ()

    @abstractmethod
    def implements_graphql_type(self, name: str) -> bool:
        """Return True if this type can be used for the GraphQL scalar type with the given name.

        During binding, the method is called on a freshly constructed instance of the type.
        """
        raise NotImplementedError()

    @abstractmethod
    def unmarshal_graphql(self, value: Any) -> None:
        """Load the given input value into this instance, raising an error if it is invalid."""
        raise NotImplementedError()

    @classmethod
    def __subclasshook__(cls, subclass: type) -> Any:
        """Recognize classes that define the Unmarshaler methods without inheriting from it."""
        if cls is Unmarshaler:
            if all(
                callable(getattr(subclass, method_name, None))
                for method_name in ("implements_graphql_type", "unmarshal_graphql")
            ):
                return True
        return NotImplemented


def is_unmarshaler_type(resolver_type: Any) -> bool:
    """Return True if the argument is a class implementing the Unmarshaler capability."""
    return isinstance(resolver_type, type) and issubclass(resolver_type, Unmarshaler)


def implements_graphql_type(resolver_type: Any, scalar_name: str) -> bool:
    """Return True if the resolver type declares that it implements the named scalar type."""
    if not is_unmarshaler_type(resolver_type):
        return False

    # Same as for unmarshaling, the declaration is queried on a fresh zero-argument instance.
    try:
        instance = resolver_type()
    except TypeError as e:
        raise MissingCapabilityError(
            f"Can not use {get_type_description(resolver_type)} as {scalar_name}: "
            f"it must be constructible without arguments."
        ) from e
    return bool(instance.implements_graphql_type(scalar_name))
