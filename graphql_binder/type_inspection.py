# Copyright 2020-present Kensho Technologies, LLC.
"""Structural questions about resolver types, answered from their type annotations.

Nothing in this module knows about GraphQL schemas. Resolver types are type annotations:
classes, as well as generic aliases such as Optional[Droid], List[Droid] or AsyncIterator[Droid].
"""
from collections import Counter
import collections.abc
from dataclasses import dataclass
import inspect
import types
from typing import (
    Annotated,
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

import funcy
from graphql import GraphQLResolveInfo

from .exceptions import ResolverShapeError
from .global_utils import FieldPath, names_match, normalize_name


_NONE_TYPE = type(None)

_EMBEDDED_MARKER = "graphql_binder.embedded"

SEQUENCE_ORIGINS = frozenset(
    {list, collections.abc.Sequence, collections.abc.MutableSequence}
)
CHANNEL_ORIGINS = frozenset(
    {collections.abc.AsyncIterator, collections.abc.AsyncIterable, collections.abc.AsyncGenerator}
)


class Embedded:
    """Mark an attribute whose own attributes are promoted into the enclosing resolver class.

    An attribute annotated as Embedded[Timestamps] lets the attributes of Timestamps satisfy
    schema fields of the enclosing class, as if they were declared on it directly:

        class Human:
            timestamps: Embedded[Timestamps]
            name: str

    Embedded attributes are only considered when binding to attributes is enabled.
    """

    def __class_getitem__(cls, item: Any) -> Any:
        """Return the annotation marking the given class as embedded."""
        return Annotated[item, _EMBEDDED_MARKER]


@dataclass(frozen=True)
class MethodSignature:
    """The annotated parameters and return values of a resolver method."""

    name: str
    # Annotations of the explicit parameters, i.e. excluding self and cls.
    # Unannotated parameters are represented by inspect.Parameter.empty.
    parameter_types: Tuple[Any, ...]
    # Annotations of the returned values: one per element of a returned Tuple[...], otherwise
    # a single element. None if the method has no return annotation.
    return_types: Optional[Tuple[Any, ...]]


def get_type_description(resolver_type: Any) -> str:
    """Return a human-readable name of the resolver type, for use in error messages."""
    if isinstance(resolver_type, type):
        return f"{resolver_type.__module__}.{resolver_type.__qualname__}"
    return repr(resolver_type)


def strip_annotated(resolver_type: Any) -> Any:
    """Return the resolver type without its Annotated[...] metadata, if any."""
    if get_origin(resolver_type) is Annotated:
        return get_args(resolver_type)[0]
    return resolver_type


def is_embedded_annotation(annotation: Any) -> bool:
    """Return True if the annotation marks an embedded attribute of a class type."""
    if get_origin(annotation) is not Annotated:
        return False
    embedded_type, *metadata = get_args(annotation)
    return _EMBEDDED_MARKER in metadata and inspect.isclass(embedded_type)


def get_optional_inner_type(resolver_type: Any) -> Optional[Any]:
    """Return X for Optional[X], or None if the resolver type is not Optional."""
    origin = get_origin(resolver_type)
    if origin is not Union and origin is not types.UnionType:
        return None

    args = get_args(resolver_type)
    if _NONE_TYPE not in args:
        return None

    non_none_args = tuple(arg for arg in args if arg is not _NONE_TYPE)
    if len(non_none_args) == 1:
        return non_none_args[0]
    return Union[non_none_args]


def is_interface_type(resolver_type: Any) -> bool:
    """Return True if the resolver type is abstract: an ABC with abstract methods, or a Protocol."""
    if not inspect.isclass(resolver_type):
        return False
    return inspect.isabstract(resolver_type) or bool(getattr(resolver_type, "_is_protocol", False))


def is_reference_type(resolver_type: Any) -> bool:
    """Return True if values of the resolver type may be None, or are behind an abstract type."""
    return get_optional_inner_type(resolver_type) is not None or is_interface_type(resolver_type)


def strip_optional(resolver_type: Any) -> Any:
    """Return X for Optional[X], and any other resolver type unchanged."""
    inner_type = get_optional_inner_type(resolver_type)
    return resolver_type if inner_type is None else inner_type


def get_sequence_element_type(resolver_type: Any) -> Optional[Any]:
    """Return the element type of a List[X], Sequence[X] or Tuple[X, ...], or None otherwise."""
    origin = get_origin(resolver_type)
    args = get_args(resolver_type)
    if origin in SEQUENCE_ORIGINS and len(args) == 1:
        return args[0]
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    return None


def get_channel_element_type(resolver_type: Any) -> Optional[Any]:
    """Return the element type of an AsyncIterator[X] or similar stream type, or None otherwise."""
    if get_origin(resolver_type) in CHANNEL_ORIGINS:
        return get_args(resolver_type)[0]
    return None


def is_context_type(annotation: Any) -> bool:
    """Return True if a parameter with this annotation receives the request context."""
    return inspect.isclass(annotation) and issubclass(annotation, GraphQLResolveInfo)


def is_error_type(annotation: Any) -> bool:
    """Return True if the annotation describes an optional exception value."""
    error_type = strip_optional(annotation)
    return inspect.isclass(error_type) and issubclass(error_type, BaseException)


def _get_type_hints(obj: Any) -> Dict[str, Any]:
    """Return the resolved annotations of a class or function, failing with a binding error."""
    try:
        return get_type_hints(obj, include_extras=True)
    except (NameError, TypeError) as e:
        raise ResolverShapeError(
            f"Could not resolve the type annotations of {getattr(obj, '__qualname__', obj)}: {e}"
        ) from e


def _is_method(member: Any) -> bool:
    """Return True if the statically-looked-up class member is callable as a method."""
    return isinstance(member, (staticmethod, classmethod)) or inspect.isfunction(member)


def find_method(resolver_type: Any, name: str) -> Optional[str]:
    """Return the name of the public method matching the name, ignoring case and underscores.

    Methods are considered in alphabetical order, and the first match wins.
    """
    if not inspect.isclass(resolver_type):
        return None

    return funcy.first(
        member_name
        for member_name in dir(resolver_type)
        if not member_name.startswith("_")
        and names_match(member_name, name)
        and _is_method(inspect.getattr_static(resolver_type, member_name))
    )


def get_method_signature(resolver_type: Any, method_name: str) -> MethodSignature:
    """Return the signature of the named method of the resolver type."""
    member = inspect.getattr_static(resolver_type, method_name)
    has_receiver = not isinstance(member, staticmethod)
    function = member.__func__ if isinstance(member, (staticmethod, classmethod)) else member

    hints = _get_type_hints(function)
    parameters = list(inspect.signature(function).parameters.values())
    if has_receiver:
        parameters = parameters[1:]
    parameter_types = tuple(hints.get(parameter.name, parameter.empty) for parameter in parameters)

    return_types: Optional[Tuple[Any, ...]]
    if "return" not in hints:
        return_types = None
    else:
        return_type = strip_annotated(hints["return"])
        if return_type is None or return_type is _NONE_TYPE:
            return_types = ()
        elif get_origin(return_type) is tuple and Ellipsis not in get_args(return_type):
            return_types = tuple(arg for arg in get_args(return_type) if arg != ())
        else:
            return_types = (return_type,)

    return MethodSignature(method_name, parameter_types, return_types)


def get_data_members(resolver_type: Any) -> Dict[str, Any]:
    """Return the public attributes of the resolver type, mapped to their annotations.

    Attributes are annotated class attributes (including dataclass fields) and properties.
    Properties are described by the return annotation of their getter.
    """
    if not inspect.isclass(resolver_type):
        return {}

    data_members = {
        member_name: annotation
        for member_name, annotation in _get_type_hints(resolver_type).items()
        if not member_name.startswith("_")
        and annotation is not ClassVar
        and get_origin(annotation) is not ClassVar
    }

    for member_name in dir(resolver_type):
        if member_name.startswith("_") or member_name in data_members:
            continue
        member = inspect.getattr_static(resolver_type, member_name)
        if isinstance(member, property) and member.fget is not None:
            data_members[member_name] = _get_type_hints(member.fget).get("return", Any)

    return data_members


def _enter_embedded_type(resolver_type: Any, visiting: FrozenSet[Any]) -> FrozenSet[Any]:
    """Return the visited types including the resolver type, failing if it embeds itself."""
    if resolver_type in visiting:
        raise ResolverShapeError(
            f"{get_type_description(resolver_type)} embeds itself, directly or through "
            f"other embedded attributes."
        )
    return visiting | {resolver_type}


def find_field(
    resolver_type: Any, name: str, _visiting: FrozenSet[Any] = frozenset()
) -> FieldPath:
    """Return the path to the attribute matching the name, ignoring case and underscores.

    Attributes of embedded attributes are searched recursively, in declaration order.
    Returns an empty path if there is no matching attribute.
    """
    visiting = _enter_embedded_type(resolver_type, _visiting)
    for member_name, annotation in get_data_members(resolver_type).items():
        if is_embedded_annotation(annotation):
            nested_path = find_field(strip_annotated(annotation), name, visiting)
            if nested_path:
                return (member_name,) + nested_path

        if names_match(member_name, name):
            return (member_name,)

    return ()


def count_field_names(resolver_type: Any, _visiting: FrozenSet[Any] = frozenset()) -> Counter:
    """Count the attributes of the resolver type by normalized name, including embedded ones.

    A count above one means that the name cannot be resolved to an attribute unambiguously.
    """
    visiting = _enter_embedded_type(resolver_type, _visiting)
    counts: Counter = Counter()
    for member_name, annotation in get_data_members(resolver_type).items():
        if is_embedded_annotation(annotation):
            counts.update(count_field_names(strip_annotated(annotation), visiting))
        else:
            counts[normalize_name(member_name)] += 1
    return counts


def get_field_path_type(resolver_type: Any, field_path: FieldPath) -> Any:
    """Return the annotation of the attribute reached by following the path."""
    current_type = resolver_type
    for member_name in field_path:
        current_type = strip_annotated(get_data_members(current_type)[member_name])
    return current_type
