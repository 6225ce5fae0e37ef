# Copyright 2020-present Kensho Technologies, LLC.
"""Construction of the resolvable tree from schema types and resolver types."""
from dataclasses import dataclass, field
from functools import partial
import logging
from types import MappingProxyType
from typing import Any, Callable, Counter, Dict, List, Mapping, Optional, Sequence, Tuple

from graphql import (
    GraphQLEnumType,
    GraphQLField,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLScalarType,
    GraphQLSchema,
    GraphQLType,
    GraphQLUnionType,
)

from ..decode import implements_graphql_type
from ..directives import DEPRECATED_DIRECTIVE_NAME, Directive, ResolverInterceptor
from ..exceptions import (
    AmbiguousFieldError,
    DirectiveError,
    GraphQLBindingError,
    MissingCapabilityError,
    ResolverShapeError,
)
from ..global_utils import FieldPath, get_type_key, normalize_name
from ..packer import PackerBuilder, StructPacker
from ..type_inspection import (
    count_field_names,
    find_field,
    find_method,
    get_channel_element_type,
    get_field_path_type,
    get_method_signature,
    get_optional_inner_type,
    get_sequence_element_type,
    get_type_description,
    is_context_type,
    is_error_type,
    is_interface_type,
    is_reference_type,
    strip_annotated,
    strip_optional,
)
from .typedefs import Field, ListNode, ObjectNode, Resolvable, ScalarNode, TypeAssertion


logger = logging.getLogger(__name__)

# Receives the finished node for a (schema type, resolver type) pair.
ResolvableTarget = Callable[[Resolvable], None]

# The resolver types of the built-in scalars. No other type may be used for these scalars,
# not even one whose values would convert losslessly.
BUILTIN_SCALAR_NAMES_BY_RESOLVER_TYPE: Mapping[type, str] = MappingProxyType(
    {
        int: "Int",
        float: "Float",
        str: "String",
        bool: "Boolean",
    }
)

# Prefix of the method names that convert interface and union values into their possible types.
TYPE_ASSERTION_METHOD_PREFIX = "To"


def make_target(node: Any, attribute_name: str) -> ResolvableTarget:
    """Return a target that sets the attribute of a frozen node to the finished resolvable."""
    # Per the docs, frozen dataclasses use object.__setattr__() to write their attributes.
    return partial(object.__setattr__, node, attribute_name)


def make_scalar_exec(scalar_type: GraphQLScalarType, resolver_type: Any) -> ScalarNode:
    """Return a scalar node, or raise an error if the resolver type cannot represent the scalar."""
    try:
        builtin_scalar_name: Optional[str] = BUILTIN_SCALAR_NAMES_BY_RESOLVER_TYPE.get(
            resolver_type
        )
    except TypeError:  # Unhashable annotation.
        builtin_scalar_name = None

    if builtin_scalar_name is not None:
        implements_type = builtin_scalar_name == scalar_type.name
    else:
        implements_type = implements_graphql_type(resolver_type, scalar_type.name)

    if not implements_type:
        raise MissingCapabilityError(
            f"Can not use {get_type_description(resolver_type)} as {scalar_type.name}."
        )
    return ScalarNode()


@dataclass
class _ResolvableCacheEntry:
    resolvable: Optional[Resolvable] = None
    targets: List[ResolvableTarget] = field(default_factory=list)


class ExecBuilder:
    """Binds schema types to resolver types, producing one shared node per distinct pair.

    Nodes are created eagerly, but are only attached to the nodes referencing them when
    finish() is called. This allows self-referential schema types to be bound: when a pair is
    encountered again while its node is still under construction, the reference to it is
    recorded instead of constructing the node a second time.

    An ExecBuilder is meant to be used once, from a single thread.
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        directive_visitors: Mapping[str, Directive],
        use_field_resolvers: bool,
    ) -> None:
        """Initialize the builder for the given schema.

        Args:
            schema: the schema whose types are bound
            directive_visitors: directive name -> visitor, already validated against the schema
            use_field_resolvers: whether fields without a matching resolver method may be bound
                                 to a matching attribute instead
        """
        self._schema = schema
        self._directive_visitors = dict(directive_visitors)
        self._use_field_resolvers = use_field_resolvers
        self._packer_builder = PackerBuilder()
        self._cache: Dict[Tuple[Any, Any], _ResolvableCacheEntry] = {}

    def finish(self) -> None:
        """Attach every node to the nodes referencing it, then finish the packers."""
        for entry in self._cache.values():
            for target in entry.targets:
                target(entry.resolvable)

        logger.debug(
            "Finished binding %d distinct (schema type, resolver type) pairs.", len(self._cache)
        )
        self._cache = {}
        self._packer_builder.finish()

    def assign(
        self, target: ResolvableTarget, schema_type: GraphQLType, resolver_type: Any
    ) -> None:
        """Bind the schema type to the resolver type, and have the target receive the node.

        The target is called when finish() is called, with the node shared by all assignments
        of the same (schema type, resolver type) pair.
        """
        resolver_type = strip_annotated(resolver_type)
        key = (get_type_key(schema_type), resolver_type)
        entry = self._cache.get(key)
        if entry is None:
            entry = _ResolvableCacheEntry()
            self._cache[key] = entry
            entry.resolvable = self._make_exec(schema_type, resolver_type)
            logger.debug("Bound %s to %s.", schema_type, get_type_description(resolver_type))
        else:
            logger.debug(
                "Reusing the binding of %s to %s.", schema_type, get_type_description(resolver_type)
            )
        entry.targets.append(target)

    def _make_exec(self, schema_type: GraphQLType, resolver_type: Any) -> Resolvable:
        non_null = isinstance(schema_type, GraphQLNonNull)
        if non_null:
            schema_type = schema_type.of_type

        # Object-like values may be None whenever their resolver type allows it, so these are
        # bound regardless of nullability.
        if isinstance(schema_type, GraphQLObjectType):
            return self._make_object_exec(
                schema_type.name, schema_type.fields, (), non_null, resolver_type
            )
        elif isinstance(schema_type, GraphQLInterfaceType):
            return self._make_object_exec(
                schema_type.name,
                schema_type.fields,
                self._schema.get_possible_types(schema_type),
                non_null,
                resolver_type,
            )
        elif isinstance(schema_type, GraphQLUnionType):
            return self._make_object_exec(
                schema_type.name, {}, schema_type.types, non_null, resolver_type
            )

        if not non_null:
            inner_type = get_optional_inner_type(resolver_type)
            if inner_type is None:
                raise ResolverShapeError(
                    f"{get_type_description(resolver_type)} is not Optional, "
                    f"but {schema_type} is nullable."
                )
            resolver_type = strip_annotated(inner_type)

        if isinstance(schema_type, GraphQLScalarType):
            return make_scalar_exec(schema_type, resolver_type)
        elif isinstance(schema_type, GraphQLEnumType):
            # Enum values are only checked against the enum at request time.
            return ScalarNode()
        elif isinstance(schema_type, GraphQLList):
            elem_type = get_sequence_element_type(resolver_type)
            if elem_type is None:
                raise ResolverShapeError(f"{get_type_description(resolver_type)} is not a list.")
            list_node = ListNode()
            self.assign(make_target(list_node, "elem"), schema_type.of_type, elem_type)
            return list_node
        else:
            raise AssertionError(f"Unreachable code reached: invalid type {schema_type}")

    def _make_object_exec(
        self,
        type_name: str,
        fields: Mapping[str, GraphQLField],
        possible_types: Sequence[GraphQLObjectType],
        non_null: bool,
        resolver_type: Any,
    ) -> ObjectNode:
        resolver_description = get_type_description(resolver_type)
        if not non_null and not is_reference_type(resolver_type):
            raise ResolverShapeError(
                f"{resolver_description} is not Optional or an abstract type, "
                f'but "{type_name}" is nullable.'
            )

        resolver_class = strip_annotated(strip_optional(resolver_type))
        # Counted on first use, so that classes resolving every field by method skip attributes.
        field_name_counts: Optional[Counter] = None

        bound_fields: Dict[str, Field] = {}
        for field_name, field_definition in fields.items():
            field_path: FieldPath = ()
            method_name = find_method(resolver_class, field_name)
            if self._use_field_resolvers and method_name is None:
                if field_name_counts is None:
                    field_name_counts = count_field_names(resolver_class)
                if field_name_counts.get(normalize_name(field_name), 0) > 1:
                    raise AmbiguousFieldError(
                        f'{resolver_description} does not resolve "{type_name}": '
                        f'ambiguous field "{field_name}"'
                    )
                field_path = find_field(resolver_class, field_name)

            if method_name is None and not field_path:
                hint = ""
                if not self._use_field_resolvers and find_field(resolver_class, field_name):
                    hint = (
                        " (hint: a matching attribute exists, but binding fields to attributes "
                        "is disabled)"
                    )
                raise ResolverShapeError(
                    f'{resolver_description} does not resolve "{type_name}": '
                    f'missing method for field "{field_name}"{hint}'
                )

            try:
                bound_fields[field_name] = self._make_field_exec(
                    type_name, field_name, field_definition, resolver_class, method_name, field_path
                )
            except GraphQLBindingError as e:
                member_name = method_name if method_name is not None else ".".join(field_path)
                raise type(e)(f"{e}\n\tused by ({resolver_description}).{member_name}") from e

        # Type assertions are needed when binding to methods, or when the resolver values
        # are not themselves of an abstract type.
        type_assertions: Dict[str, TypeAssertion] = {}
        if not self._use_field_resolvers or not is_interface_type(resolver_class):
            for possible_type in possible_types:
                type_assertions[possible_type.name] = self._make_type_assertion(
                    type_name, possible_type, resolver_class, resolver_description
                )

        return ObjectNode(
            name=type_name,
            fields=MappingProxyType(bound_fields),
            type_assertions=MappingProxyType(type_assertions),
        )

    def _make_type_assertion(
        self,
        type_name: str,
        possible_type: GraphQLObjectType,
        resolver_class: Any,
        resolver_description: str,
    ) -> TypeAssertion:
        conversion_name = TYPE_ASSERTION_METHOD_PREFIX + possible_type.name
        method_name = find_method(resolver_class, conversion_name)
        if method_name is None:
            raise MissingCapabilityError(
                f'{resolver_description} does not resolve "{type_name}": missing method '
                f'"{conversion_name}" to convert to "{possible_type.name}"'
            )

        signature = get_method_signature(resolver_class, method_name)
        if signature.parameter_types:
            raise MissingCapabilityError(
                f'{resolver_description} does not resolve "{type_name}": method '
                f'"{method_name}" converting to "{possible_type.name}" should not have '
                f"any arguments"
            )
        return_types = signature.return_types
        if return_types is None or len(return_types) != 2 or return_types[1] is not bool:
            raise MissingCapabilityError(
                f'{resolver_description} does not resolve "{type_name}": method '
                f'"{method_name}" converting to "{possible_type.name}" should return a value '
                f"and a bool indicating success"
            )

        type_assertion = TypeAssertion(method_name=method_name)
        self.assign(make_target(type_assertion, "type_exec"), possible_type, return_types[0])
        return type_assertion

    def _make_field_exec(
        self,
        type_name: str,
        field_name: str,
        field_definition: GraphQLField,
        resolver_class: Any,
        method_name: Optional[str],
        field_path: FieldPath,
    ) -> Field:
        args_packer: Optional[StructPacker] = None
        has_context = False
        has_error = False

        # Attributes take no context and no arguments, and never fail.
        if method_name is not None:
            signature = get_method_signature(resolver_class, method_name)
            parameter_types = list(signature.parameter_types)

            has_context = bool(parameter_types) and is_context_type(parameter_types[0])
            if has_context:
                parameter_types = parameter_types[1:]

            if field_definition.args:
                if not parameter_types:
                    raise ResolverShapeError(
                        "Must have an args parameter, annotated with a class holding "
                        "the field arguments."
                    )
                args_packer = self._packer_builder.make_struct_packer(
                    field_definition.args, parameter_types[0]
                )
                parameter_types = parameter_types[1:]

            if parameter_types:
                raise ResolverShapeError("Too many arguments.")

            return_types = signature.return_types
            if return_types is None:
                raise ResolverShapeError("Missing return type annotation.")
            if len(return_types) < 1:
                raise ResolverShapeError("Too few return values.")
            if len(return_types) > 2:
                raise ResolverShapeError("Too many return values.")

            has_error = len(return_types) == 2
            if has_error and not is_error_type(return_types[1]):
                raise ResolverShapeError(
                    "Must have an optional exception type as its last return value."
                )

            value_type = return_types[0]
            subscription_type = self._schema.subscription_type
            if subscription_type is not None and type_name == subscription_type.name:
                elem_type = get_channel_element_type(value_type)
                if elem_type is not None:
                    value_type = elem_type
        else:
            value_type = get_field_path_type(resolver_class, field_path)

        bound_field = Field(
            name=field_name,
            definition=field_definition,
            type_name=type_name,
            method_name=method_name,
            field_path=field_path,
            has_context=has_context,
            has_error=has_error,
            args_packer=args_packer,
            directive_packers=MappingProxyType(
                self._make_directive_packers(field_name, field_definition)
            ),
            trace_label=f"GraphQL field: {type_name}.{field_name}",
        )
        self.assign(make_target(bound_field, "value_exec"), field_definition.type, value_type)
        return bound_field

    def _make_directive_packers(
        self, field_name: str, field_definition: GraphQLField
    ) -> Dict[str, StructPacker]:
        directive_packers: Dict[str, StructPacker] = {}
        if field_definition.ast_node is None:
            return directive_packers

        for directive_node in field_definition.ast_node.directives or ():
            directive_name = directive_node.name.value

            # Built-in directive without arguments worth packing.
            if directive_name == DEPRECATED_DIRECTIVE_NAME:
                continue

            visitor = self._directive_visitors.get(directive_name)
            if visitor is None:
                raise DirectiveError(
                    f'Directive "{directive_name}" on field "{field_name}" does not have '
                    f"a visitor registered with the schema."
                )

            # The directive does not apply at field resolution time.
            if not isinstance(visitor, ResolverInterceptor):
                continue

            # The arguments of the applied directive lack their types, so the definition is used.
            directive_definition = self._schema.get_directive(directive_name)
            if directive_definition is None:
                raise DirectiveError(
                    f'Directive definition "{directive_name}" is not defined in the schema.'
                )
            directive_packers[directive_name] = self._packer_builder.make_struct_packer(
                directive_definition.args, type(visitor)
            )

        return directive_packers
