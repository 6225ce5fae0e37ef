# Copyright 2017-present Kensho Technologies, LLC.
class GraphQLError(Exception):
    """Generic error when processing GraphQL."""


class GraphQLBindingError(GraphQLError):
    """Exception raised when the provided resolvers cannot be bound to the provided schema.

    Binding is all-or-nothing: once this error is raised, no part of the resolvable tree
    is returned to the caller.
    """


class ResolverShapeError(GraphQLBindingError):
    """Exception raised when a resolver type does not have the shape required by the schema.

    For example:
    - the resolver type has no method or attribute matching a schema field;
    - a resolver method accepts the wrong parameters, e.g. no args parameter for a field
      that declares arguments, or unexpected extra parameters;
    - a resolver method declares too few or too many return values;
    - a nullable schema type is bound to a resolver type that is not Optional.
    """


class AmbiguousFieldError(GraphQLBindingError):
    """Exception raised when more than one embedded attribute resolves to the same field name."""


class MissingCapabilityError(GraphQLBindingError):
    """Exception raised when a resolver type lacks a capability required by the schema.

    For example:
    - a scalar resolver type does not declare that it implements the schema's scalar type;
    - an interface or union resolver type has no method converting it to a possible type.
    """


class DirectiveError(MissingCapabilityError):
    """Exception raised when directive visitors do not match the directives of the schema.

    For example:
    - a directive placed on field definitions has no registered visitor;
    - more than one visitor is registered for the same directive;
    - a visitor does not implement any of the recognized visitor functions.
    """


class InvalidRootResolverError(GraphQLBindingError):
    """Exception raised when a root resolver's operation method has the wrong shape.

    The "query", "mutation" and "subscription" methods of a root resolver must not accept
    any arguments, must return exactly one Optional or abstract value, and that value
    must not be None.
    """


class PackerError(GraphQLBindingError):
    """Exception raised when argument values cannot be packed into their resolver type.

    Raised at binding time when an args class does not match the declared arguments, and at
    request time when the provided argument values do not match the declared argument types.
    """
