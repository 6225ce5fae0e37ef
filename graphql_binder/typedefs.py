# Copyright 2020-present Kensho Technologies, LLC.
from dataclasses import dataclass
from typing import Sequence, Union

from graphql import GraphQLSchema

from .directives import Directive


# A schema may be provided either already built, or as the text of its definition.
SchemaOrSchemaText = Union[GraphQLSchema, str]


@dataclass(frozen=True)
class BindingOptions:
    """Options controlling how resolvers are bound to a schema."""

    # Whether fields without a matching resolver method may be bound to a matching attribute
    # instead. Methods always take precedence over attributes.
    use_field_resolvers: bool = False

    # Implementations of the directives declared in the schema. Every directive that may be
    # placed on field definitions needs one, unless it is built into GraphQL.
    directive_visitors: Sequence[Directive] = ()
