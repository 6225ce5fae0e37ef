"""Examples directory.

This directory primarily exists so that we can:
1. Run linting checks on the examples we embed in our documentation. All of python files in
   this directory are linted as part of CI.
2. Reduce code duplication. The resolver binding example is shared with the README.rst.
"""
