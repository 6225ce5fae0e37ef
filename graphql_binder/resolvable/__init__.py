# Copyright 2020-present Kensho Technologies, LLC.
from .apply_resolver import MUTATION, QUERY, ROOT_OPERATIONS, SUBSCRIPTION, apply_resolver  # noqa
from .exec_builder import ExecBuilder, make_scalar_exec  # noqa
from .typedefs import (  # noqa
    BoundSchema,
    Field,
    ListNode,
    ObjectNode,
    Resolvable,
    ScalarNode,
    TypeAssertion,
)
