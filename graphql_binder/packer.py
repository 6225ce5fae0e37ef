# Copyright 2020-present Kensho Technologies, LLC.
"""Packing of GraphQL argument values into the parameter types of resolver methods.

A packer is built once per (schema type, resolver type) pair during binding, and converts the
argument values of each request into instances of the resolver's args class.
"""
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, field, is_dataclass
import enum
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from graphql import (
    GraphQLArgument,
    GraphQLEnumType,
    GraphQLInputField,
    GraphQLInputObjectType,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLScalarType,
    GraphQLType,
    GraphQLUnionType,
)
from graphql.pyutils import Undefined

from .decode import is_unmarshaler_type
from .exceptions import PackerError
from .global_utils import get_type_key, names_match
from .type_inspection import (
    get_data_members,
    get_optional_inner_type,
    get_sequence_element_type,
    get_type_description,
    strip_annotated,
)


logger = logging.getLogger(__name__)

InputValueDefinition = Union[GraphQLArgument, GraphQLInputField]

# The largest and smallest values of the GraphQL Int type, a signed 32-bit integer.
MAX_INT = 2 ** 31 - 1
MIN_INT = -(2 ** 31)

_PRIMITIVE_INPUT_TYPES = (int, float, str, bool)


class Packer(metaclass=ABCMeta):
    """Converts an input value of some GraphQL type into a value of some resolver type."""

    @abstractmethod
    def pack(self, value: Any) -> Any:
        """Return the packed value, raising PackerError if the value cannot be packed."""
        raise NotImplementedError()


def _unmarshal_input(target_type: Any, value: Any) -> Any:
    """Convert a scalar or enum input value into a value of the target type."""
    if target_type is bool:
        if isinstance(value, bool):
            return value
    elif target_type is int:
        if isinstance(value, int) and not isinstance(value, bool):
            if not MIN_INT <= value <= MAX_INT:
                raise PackerError(f"Value {value} is out of range for a 32-bit integer.")
            return value
    elif target_type is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif target_type is str:
        if isinstance(value, str):
            return value
    elif isinstance(target_type, type) and issubclass(target_type, enum.Enum):
        if isinstance(value, target_type):
            return value
        if isinstance(value, str):
            try:
                return target_type[value]
            except KeyError as e:
                raise PackerError(
                    f"Invalid value {value!r} for enum {get_type_description(target_type)}."
                ) from e
    elif is_unmarshaler_type(target_type):
        unmarshaled = target_type()
        try:
            unmarshaled.unmarshal_graphql(value)
        except (TypeError, ValueError) as e:
            raise PackerError(str(e)) from e
        return unmarshaled

    raise PackerError(
        f"Incompatible type: {value!r} can not be used as {get_type_description(target_type)}."
    )


@dataclass
class ValuePacker(Packer):
    """Packs non-null scalar and enum values."""

    value_type: Any

    def pack(self, value: Any) -> Any:
        """Return the value converted to the value type."""
        if value is None:
            raise PackerError("Got null for non-null.")
        return _unmarshal_input(self.value_type, value)


@dataclass
class NullPacker(Packer):
    """Packs values of nullable types, passing None through."""

    # Set by the PackerBuilder when it finishes.
    elem_packer: Packer = field(default=None, repr=False)  # type: ignore[assignment]

    def pack(self, value: Any) -> Any:
        """Return None for a null value, and the packed value otherwise."""
        if value is None:
            return None
        return self.elem_packer.pack(value)


@dataclass
class ListPacker(Packer):
    """Packs list values, treating a single value as a list with one element."""

    # Set by the PackerBuilder when it finishes.
    elem_packer: Packer = field(default=None, repr=False)  # type: ignore[assignment]

    def pack(self, value: Any) -> List[Any]:
        """Return the list of packed elements."""
        if value is None:
            raise PackerError("Got null for non-null.")
        if not isinstance(value, (list, tuple)):
            value = [value]
        return [self.elem_packer.pack(element) for element in value]


@dataclass
class _StructPackerField:
    """One input value of a StructPacker, and the attribute that receives it."""

    argument_name: str
    attribute_name: str
    argument_type: GraphQLType
    default_value: Any

    # Set by the PackerBuilder when it finishes.
    field_packer: Packer = field(default=None, repr=False)  # type: ignore[assignment]


class StructPacker(Packer):
    """Packs a mapping of argument or input object values into an instance of a class.

    Dataclasses are instantiated by calling their constructor with the packed values. Instances
    of other classes are created without calling their constructor, and the packed values are
    assigned to their attributes.
    """

    def __init__(self, struct_type: type, fields: Tuple[_StructPackerField, ...]) -> None:
        """Initialize the StructPacker. Defaults are packed once the PackerBuilder finishes."""
        self.struct_type = struct_type
        self.fields = fields
        self._default_values: Optional[Dict[str, Any]] = None

    def __repr__(self) -> str:
        """Return a short description of the packer."""
        return f"StructPacker({get_type_description(self.struct_type)})"

    def finish(self) -> None:
        """Pack the default values of all fields that declare one."""
        default_values = {}
        for struct_field in self.fields:
            if struct_field.default_value is not Undefined:
                default_values[struct_field.attribute_name] = struct_field.field_packer.pack(
                    struct_field.default_value
                )
        self._default_values = default_values

    def pack(self, value: Any) -> Any:
        """Return a new instance of the struct type holding the packed values."""
        if self._default_values is None:
            raise AssertionError(
                f"Attempting to pack values with {self}, whose PackerBuilder never finished."
            )
        if value is None:
            raise PackerError("Got null for non-null.")
        if not isinstance(value, Mapping):
            raise PackerError(
                f"Expected a mapping of values for {get_type_description(self.struct_type)}, "
                f"got {value!r}."
            )

        attribute_values: Dict[str, Any] = {}
        for struct_field in self.fields:
            if struct_field.argument_name in value:
                try:
                    attribute_values[struct_field.attribute_name] = struct_field.field_packer.pack(
                        value[struct_field.argument_name]
                    )
                except PackerError as e:
                    raise PackerError(f'Field "{struct_field.argument_name}": {e}') from e
            elif struct_field.attribute_name in self._default_values:
                attribute_values[struct_field.attribute_name] = self._default_values[
                    struct_field.attribute_name
                ]
            elif isinstance(struct_field.argument_type, GraphQLNonNull):
                raise PackerError(
                    f'Missing value for non-null field "{struct_field.argument_name}".'
                )
            else:
                attribute_values[struct_field.attribute_name] = None

        if is_dataclass(self.struct_type):
            return self.struct_type(**attribute_values)

        packed = self.struct_type.__new__(self.struct_type)
        for attribute_name, attribute_value in attribute_values.items():
            setattr(packed, attribute_name, attribute_value)
        return packed


@dataclass
class _PackerCacheEntry:
    packer: Optional[Packer] = None
    targets: List[Callable[[Packer], None]] = field(default_factory=list)


class PackerBuilder:
    """Builds packers, sharing one packer per (schema type, resolver type) pair.

    Packers of recursive input object types refer to each other, so nested packers are attached
    to their parents only when finish() is called. No packer may be used before then.
    """

    def __init__(self) -> None:
        """Initialize an empty PackerBuilder."""
        self._cache: Dict[Tuple[Any, Any], _PackerCacheEntry] = {}
        self._struct_packers: List[StructPacker] = []

    def finish(self) -> None:
        """Attach all nested packers, then pack the default values of all struct packers."""
        for entry in self._cache.values():
            for target in entry.targets:
                target(entry.packer)

        for struct_packer in self._struct_packers:
            try:
                struct_packer.finish()
            except PackerError as e:
                raise PackerError(f"Invalid default value for {struct_packer}: {e}") from e

        logger.debug(
            "Finished %(num_packers)d packers, of which %(num_struct_packers)d struct packers.",
            {"num_packers": len(self._cache), "num_struct_packers": len(self._struct_packers)},
        )

    def _assign_packer(
        self, target: Callable[[Packer], None], schema_type: GraphQLType, resolver_type: Any
    ) -> None:
        key = (get_type_key(schema_type), resolver_type)
        entry = self._cache.get(key)
        if entry is None:
            entry = _PackerCacheEntry()
            self._cache[key] = entry
            entry.packer = self._make_packer(schema_type, resolver_type)
        entry.targets.append(target)

    def _make_packer(self, schema_type: GraphQLType, resolver_type: Any) -> Packer:
        resolver_type = strip_annotated(resolver_type)

        if not isinstance(schema_type, GraphQLNonNull):
            inner_type = get_optional_inner_type(resolver_type)
            if inner_type is None and get_sequence_element_type(resolver_type) is None:
                raise PackerError(
                    f"{get_type_description(resolver_type)} is not Optional or a list, "
                    f"but {schema_type} is nullable."
                )
            null_packer = NullPacker()
            self._assign_packer(
                lambda packer: setattr(null_packer, "elem_packer", packer),
                GraphQLNonNull(schema_type),
                resolver_type if inner_type is None else inner_type,
            )
            return null_packer

        if get_optional_inner_type(resolver_type) is not None:
            raise PackerError(
                f"{get_type_description(resolver_type)} is Optional, but {schema_type} is non-null."
            )

        unwrapped_type = schema_type.of_type
        if isinstance(unwrapped_type, (GraphQLScalarType, GraphQLEnumType)):
            is_enum_type = isinstance(resolver_type, type) and issubclass(resolver_type, enum.Enum)
            if not (
                resolver_type in _PRIMITIVE_INPUT_TYPES
                or is_enum_type
                or is_unmarshaler_type(resolver_type)
            ):
                raise PackerError(
                    f"{get_type_description(resolver_type)} can not be used for input values "
                    f"of type {unwrapped_type}."
                )
            return ValuePacker(resolver_type)
        elif isinstance(unwrapped_type, GraphQLInputObjectType):
            return self.make_struct_packer(unwrapped_type.fields, resolver_type)
        elif isinstance(unwrapped_type, GraphQLList):
            elem_type = get_sequence_element_type(resolver_type)
            if elem_type is None:
                raise PackerError(
                    f"Expected a list type for {unwrapped_type}, "
                    f"got {get_type_description(resolver_type)}."
                )
            list_packer = ListPacker()
            self._assign_packer(
                lambda packer: setattr(list_packer, "elem_packer", packer),
                unwrapped_type.of_type,
                elem_type,
            )
            return list_packer
        elif isinstance(
            unwrapped_type, (GraphQLObjectType, GraphQLInterfaceType, GraphQLUnionType)
        ):
            raise PackerError(f"Type {unwrapped_type} can not be used as input.")
        else:
            raise AssertionError(
                f"Unreachable code reached: unexpected input type {unwrapped_type}"
            )

    def make_struct_packer(
        self, input_values: Mapping[str, InputValueDefinition], resolver_type: Any
    ) -> StructPacker:
        """Build a packer of the given arguments or input fields into the resolver type.

        Args:
            input_values: name -> definition of each argument or input object field
            resolver_type: class with one annotated attribute per input value, matched by name
                           ignoring case and underscores

        Returns:
            StructPacker, usable once this builder's finish() method has been called

        Raises:
            PackerError: if the resolver type does not match the input values
        """
        resolver_type = strip_annotated(resolver_type)
        if not isinstance(resolver_type, type):
            raise PackerError(
                f"Expected a class, got {get_type_description(resolver_type)} (hint: missing "
                f"args class wrapping the field arguments?)"
            )

        data_members = get_data_members(resolver_type)
        struct_fields = []
        for argument_name, definition in input_values.items():
            attribute_name = next(
                (
                    member_name
                    for member_name in data_members
                    if names_match(member_name, argument_name)
                ),
                None,
            )
            if attribute_name is None:
                raise PackerError(
                    f'{get_type_description(resolver_type)} does not define field '
                    f'"{argument_name}" (hint: missing args class wrapping the field arguments, '
                    f"or missing attribute on the input class?)"
                )

            argument_type = definition.type
            default_value = definition.default_value
            if default_value is not Undefined and default_value is not None:
                if not isinstance(argument_type, GraphQLNonNull):
                    argument_type = GraphQLNonNull(argument_type)
            else:
                default_value = Undefined

            struct_field = _StructPackerField(
                argument_name, attribute_name, argument_type, default_value
            )
            try:
                self._assign_packer(
                    lambda packer, struct_field=struct_field: setattr(
                        struct_field, "field_packer", packer
                    ),
                    argument_type,
                    data_members[attribute_name],
                )
            except PackerError as e:
                raise PackerError(f'Field "{attribute_name}": {e}') from e
            struct_fields.append(struct_field)

        struct_packer = StructPacker(resolver_type, tuple(struct_fields))
        self._struct_packers.append(struct_packer)
        return struct_packer
