# Copyright 2020-present Kensho Technologies, LLC.
"""Binding of an application's root resolver to the root operation types of a schema."""
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from graphql import GraphQLObjectType, GraphQLSchema

from ..directives import Directive, get_directive_visitors_by_name
from ..exceptions import InvalidRootResolverError
from ..type_inspection import (
    find_method,
    get_method_signature,
    get_type_description,
    is_reference_type,
)
from .exec_builder import ExecBuilder
from .typedefs import BoundSchema, Resolvable


logger = logging.getLogger(__name__)

QUERY = "Query"
MUTATION = "Mutation"
SUBSCRIPTION = "Subscription"
ROOT_OPERATIONS: Tuple[str, ...] = (QUERY, MUTATION, SUBSCRIPTION)


def _get_operation_resolver(resolver: Any, operation: str) -> Any:
    """Return the dedicated resolver of the operation if the root resolver has one, else itself.

    A root resolver may provide a dedicated resolver per operation, through a method named
    after the operation ("query", "mutation" or "subscription", ignoring case and underscores)
    that takes no arguments and returns the resolver.
    """
    resolver_type = type(resolver)
    resolver_description = get_type_description(resolver_type)
    method_name = find_method(resolver_type, operation)
    if method_name is None:
        return resolver

    signature = get_method_signature(resolver_type, method_name)
    if signature.parameter_types:
        raise InvalidRootResolverError(
            f'Method "{method_name}" of {resolver_description} must not accept any arguments, '
            f"got {len(signature.parameter_types)}."
        )

    return_types = signature.return_types
    if return_types is None:
        raise InvalidRootResolverError(
            f'Method "{method_name}" of {resolver_description} must have a return type annotation.'
        )
    if len(return_types) != 1:
        raise InvalidRootResolverError(
            f'Method "{method_name}" of {resolver_description} must have 1 return value, '
            f"got {len(return_types)}."
        )
    if not is_reference_type(return_types[0]):
        raise InvalidRootResolverError(
            f'Method "{method_name}" of {resolver_description} must return an Optional or '
            f"an abstract type, got {get_type_description(return_types[0])}."
        )

    operation_resolver = getattr(resolver, method_name)()
    if operation_resolver is None:
        raise InvalidRootResolverError(
            f'Method "{method_name}" of {resolver_description} must return a non-None result, '
            f"got {operation_resolver}."
        )
    return operation_resolver


def _get_root_operation_types(schema: GraphQLSchema) -> Dict[str, Optional[GraphQLObjectType]]:
    """Return the root operation type of each operation, or None if the schema has none."""
    return {
        QUERY: schema.query_type,
        MUTATION: schema.mutation_type,
        SUBSCRIPTION: schema.subscription_type,
    }


def apply_resolver(
    schema: GraphQLSchema,
    resolver: Any,
    directive_visitors: Iterable[Directive] = (),
    use_field_resolvers: bool = False,
) -> BoundSchema:
    """Bind the resolver to the schema, producing the resolvable tree of each root operation.

    Args:
        schema: parsed and validated GraphQL schema
        resolver: root resolver of the application. It resolves the root operations itself,
                  except for those it provides dedicated resolvers for, through its "query",
                  "mutation" and "subscription" methods. May be None, in which case no
                  resolvable trees are produced.
        directive_visitors: implementations of the directives declared in the schema
        use_field_resolvers: whether fields without a matching resolver method may be bound
                             to a matching attribute instead

    Returns:
        BoundSchema holding the resolvable tree and resolver of each declared root operation

    Raises:
        GraphQLBindingError: if the resolvers or directive visitors do not match the schema.
                             Binding is all-or-nothing: nothing is returned on failure.
    """
    if resolver is None:
        return BoundSchema(schema=schema)

    visitors_by_name = get_directive_visitors_by_name(schema, directive_visitors)
    builder = ExecBuilder(schema, visitors_by_name, use_field_resolvers)

    resolvers = {
        operation: _get_operation_resolver(resolver, operation) for operation in ROOT_OPERATIONS
    }

    resolvables: Dict[str, Resolvable] = {}
    for operation, operation_type in _get_root_operation_types(schema).items():
        if operation_type is None:
            continue

        # The resolver is a reference to a value of its type, as any other object resolver.
        resolver_type = Optional[type(resolvers[operation])]
        builder.assign(
            lambda resolvable, operation=operation: resolvables.__setitem__(operation, resolvable),
            operation_type,
            resolver_type,
        )
        logger.info(
            "Bound the %s operation of type %s to %s.",
            operation.lower(),
            operation_type.name,
            get_type_description(type(resolvers[operation])),
        )

    builder.finish()

    return BoundSchema(
        schema=schema,
        query=resolvables.get(QUERY),
        mutation=resolvables.get(MUTATION),
        subscription=resolvables.get(SUBSCRIPTION),
        query_resolver=resolvers[QUERY],
        mutation_resolver=resolvers[MUTATION],
        subscription_resolver=resolvers[SUBSCRIPTION],
    )
