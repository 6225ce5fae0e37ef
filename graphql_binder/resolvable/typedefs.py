# Copyright 2020-present Kensho Technologies, LLC.
"""The resolvable tree: the immutable result of binding resolvers to a schema.

The tree mirrors the shape of the schema, as seen from a particular resolver type. Each node
describes how to obtain values at request time without inspecting any types:
- ObjectNode: a value that has fields, and possibly type assertions for interfaces and unions;
- ListNode: a sequence of values, all described by the same element node;
- ScalarNode: a leaf value, already known to be compatible with its scalar or enum type.

Nodes are shared whenever the same (schema type, resolver type) pair is bound more than once,
so the tree of a self-referential schema contains reference cycles. None of the node classes
implement structural equality, since comparing cyclic trees would never terminate.
"""
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Mapping, Optional, Tuple, Union

from graphql import GraphQLField, GraphQLSchema

from ..global_utils import FieldPath
from ..packer import StructPacker


@dataclass(frozen=True, eq=False)
class ScalarNode:
    """A leaf value of a scalar or enum type."""


@dataclass(frozen=True, eq=False)
class ListNode:
    """A list value, whose elements are described by the element node."""

    # Set by the ExecBuilder before the tree is returned.
    elem: "Resolvable" = field(default=None, repr=False)  # type: ignore[assignment]


@dataclass(frozen=True, eq=False)
class Field:
    """A bound schema field: how to obtain its value, and the shape of that value.

    The value is obtained either by calling the resolver method named by method_name, or by
    reading the attribute reached by following field_path from the resolver. Exactly one of
    the two is set.
    """

    name: str  # The name of the field in the schema.
    definition: GraphQLField  # The field's definition, including its type and arguments.
    type_name: str  # The name of the schema type that declares the field.
    method_name: Optional[str]  # The resolver method to call, or None when using an attribute.
    field_path: FieldPath  # The attribute path to read, or () when calling a method.
    has_context: bool  # Whether the method's first parameter receives the request context.
    has_error: bool  # Whether the method returns a (value, error) tuple.
    args_packer: Optional[StructPacker]  # Packs the field's arguments, if it declares any.
    directive_packers: Mapping[str, StructPacker]  # Directive name -> packer for its args.
    trace_label: str

    # Set by the ExecBuilder before the tree is returned.
    value_exec: "Resolvable" = field(default=None, repr=False)  # type: ignore[assignment]

    @property
    def uses_method_resolver(self) -> bool:
        """Return True if the field's value is obtained by calling a resolver method."""
        return not self.field_path

    def invoke(
        self, resolver: Any, context: Any = None, args: Any = None
    ) -> Tuple[Any, Optional[BaseException]]:
        """Obtain the value of this field from the given resolver value.

        Args:
            resolver: the resolver value of the type that declares this field
            context: the request context, passed only if the method expects one
            args: the field's arguments, already packed with args_packer, passed only if
                  the field declares arguments

        Returns:
            tuple (value, error). The error is None unless the method returned one.
            Values of coroutine methods are returned as-is, for the executor to await.
        """
        if not self.uses_method_resolver:
            return reduce(getattr, self.field_path, resolver), None

        call_args = []
        if self.has_context:
            call_args.append(context)
        if self.args_packer is not None:
            call_args.append(args)

        result = getattr(resolver, self.method_name)(*call_args)
        if self.has_error:
            value, error = result
            return value, error
        return result, None


@dataclass(frozen=True, eq=False)
class TypeAssertion:
    """The conversion of an interface or union value into one of its possible types."""

    method_name: str  # Method returning a (concrete value, success) tuple.

    # Set by the ExecBuilder before the tree is returned.
    type_exec: "Resolvable" = field(default=None, repr=False)  # type: ignore[assignment]

    def convert(self, value: Any) -> Tuple[Any, bool]:
        """Attempt to convert the value, returning the concrete value and whether it succeeded."""
        concrete_value, ok = getattr(value, self.method_name)()
        return concrete_value, bool(ok)


@dataclass(frozen=True, eq=False)
class ObjectNode:
    """A value of an object, interface or union type."""

    name: str  # The name of the schema type.
    fields: Mapping[str, Field]  # Schema field name -> bound field. Empty for unions.
    type_assertions: Mapping[str, TypeAssertion]  # Possible type name -> conversion.


Resolvable = Union[ObjectNode, ListNode, ScalarNode]


@dataclass(frozen=True)
class BoundSchema:
    """A schema, together with the resolvable trees and resolvers of its root operations.

    The resolvable of an operation the schema does not declare is None. When the schema was
    bound without a resolver, all resolvables and resolvers are None.
    """

    schema: GraphQLSchema
    query: Optional[Resolvable] = None
    mutation: Optional[Resolvable] = None
    subscription: Optional[Resolvable] = None
    query_resolver: Any = None
    mutation_resolver: Any = None
    subscription_resolver: Any = None
