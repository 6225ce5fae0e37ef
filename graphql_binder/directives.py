# Copyright 2020-present Kensho Technologies, LLC.
"""Directive visitors, and validation of the visitors registered with a schema."""
from abc import ABCMeta, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from graphql import DirectiveLocation, GraphQLResolveInfo, GraphQLSchema

from .exceptions import DirectiveError


# Directives that are part of the GraphQL specification. They are allowed on field definitions
# without a registered visitor, since their semantics are handled by the GraphQL machinery.
BUILTIN_DIRECTIVE_NAMES: FrozenSet[str] = frozenset(
    {"include", "skip", "deprecated", "specifiedBy"}
)

# The built-in directive that may appear on a field definition, but never needs a packer.
DEPRECATED_DIRECTIVE_NAME = "deprecated"

# The continuation passed to a ResolverInterceptor: it resolves the field and returns
# a (value, error) tuple.
NextResolver = Callable[[Optional[GraphQLResolveInfo]], Tuple[Any, Optional[BaseException]]]


class Directive(metaclass=ABCMeta):
    """Base class for the implementation of a directive declared in the schema.

    A directive implementation names the directive it implements, and additionally implements
    at least one of the visitor capabilities below, such as ResolverInterceptor.

    The annotated attributes of a directive implementation receive the directive's arguments:
    the arguments declared by the directive definition in the schema are packed into a new
    instance of the implementation's class, the same way field arguments are packed into
    an args class.
    """

    @abstractmethod
    def implements_directive(self) -> str:
        """Return the name of the directive that this visitor implements."""
        raise NotImplementedError()


class ResolverInterceptor(metaclass=ABCMeta):
    """Capability of directive visitors that wrap the resolution of a field.

    Binding only validates and prepares interceptors: calling resolve() around the resolution
    of a field is the responsibility of the query executor.
    """

    @abstractmethod
    def resolve(
        self, info: Optional[GraphQLResolveInfo], args: Any, next_resolver: NextResolver
    ) -> Tuple[Any, Optional[BaseException]]:
        """Resolve the field, typically by calling next_resolver and post-processing its result.

        Args:
            info: the request context, as passed to the field's resolver
            args: the directive's arguments, packed into an instance of the visitor's class
            next_resolver: continuation that resolves the field with the given context

        Returns:
            tuple (value, error), in the same form as resolver methods returning errors
        """
        raise NotImplementedError()


# All the visitor capabilities known to the binder. A registered directive visitor must
# implement at least one of them.
DIRECTIVE_VISITOR_CAPABILITIES: Tuple[type, ...] = (ResolverInterceptor,)


def get_directive_visitors_by_name(
    schema: GraphQLSchema, visitors: Iterable[Directive]
) -> Dict[str, Directive]:
    """Validate the directive visitors against the schema, and index them by directive name.

    Args:
        schema: GraphQL schema whose directive definitions the visitors must match
        visitors: directive implementations supplied by the application

    Returns:
        dict, directive name -> the visitor implementing that directive

    Raises:
        DirectiveError: if a directive is implemented more than once, if a visitor implements
                        none of the directive visitor capabilities, or if a directive that may
                        be placed on field definitions has no visitor and is not built-in
    """
    visitors_by_name: Dict[str, Directive] = {}

    for visitor in visitors:
        name = visitor.implements_directive()

        existing_visitor = visitors_by_name.get(name)
        if existing_visitor is not None:
            raise DirectiveError(
                f'Multiple implementations registered for directive "{name}". Implementation '
                f"types {type(existing_visitor).__name__} and {type(visitor).__name__}."
            )

        # Interception of field resolution is currently the only visitor capability.
        if not isinstance(visitor, DIRECTIVE_VISITOR_CAPABILITIES):
            raise DirectiveError(
                f'Directive "{name}" (implemented by {type(visitor).__name__}) does not '
                f"implement a valid directive visitor function."
            )

        visitors_by_name[name] = visitor

    for directive in schema.directives:
        # TODO: directive locations other than FIELD_DEFINITION need visitor capabilities of
        #       their own before they can be validated here.
        if DirectiveLocation.FIELD_DEFINITION not in directive.locations:
            continue

        if directive.name in visitors_by_name or directive.name in BUILTIN_DIRECTIVE_NAMES:
            continue

        raise DirectiveError(
            f'No visitors have been registered for directive "{directive.name}".'
        )

    return visitors_by_name
