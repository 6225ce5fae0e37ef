# Copyright 2017-present Kensho Technologies, LLC.
"""Commonly-used functions and data types from this package."""
from typing import Any, Optional

from graphql import build_schema

from .decode import Unmarshaler  # noqa
from .directives import Directive, ResolverInterceptor  # noqa
from .exceptions import (  # noqa
    AmbiguousFieldError,
    DirectiveError,
    GraphQLBindingError,
    GraphQLError,
    InvalidRootResolverError,
    MissingCapabilityError,
    PackerError,
    ResolverShapeError,
)
from .resolvable import (  # noqa
    BoundSchema,
    Field,
    ListNode,
    ObjectNode,
    Resolvable,
    ScalarNode,
    TypeAssertion,
    apply_resolver,
)
from .scalars import ID, Time  # noqa
from .type_inspection import Embedded  # noqa
from .typedefs import BindingOptions, SchemaOrSchemaText


__package_name__ = "graphql-binder"
__version__ = "1.0.0"


def bind_schema(
    schema: SchemaOrSchemaText, resolver: Any, options: Optional[BindingOptions] = None
) -> BoundSchema:
    """Bind the resolver to the schema, building the schema from its definition if needed.

    Args:
        schema: GraphQLSchema, or the text of a schema definition in the GraphQL SDL
        resolver: root resolver of the application, or None to only build the schema
        options: BindingOptions controlling how the resolvers are bound, defaults if None

    Returns:
        BoundSchema holding the resolvable tree and resolver of each declared root operation
    """
    if options is None:
        options = BindingOptions()

    if isinstance(schema, str):
        schema = build_schema(schema)

    return apply_resolver(
        schema,
        resolver,
        directive_visitors=options.directive_visitors,
        use_field_resolvers=options.use_field_resolvers,
    )
