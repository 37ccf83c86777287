"""Suite and OpenAPI parsing -- load files and index operations.

This sub-package covers the first two stages of the call pipeline:
reading the YAML test-definition file (and any ``$file`` data files it
references), and turning the OpenAPI document into an
:class:`~callspec.parser.operations.OperationIndex`.

Typical usage::

    from callspec.parser import OperationIndex, load_spec, load_suite

    suite = load_suite("users.calls.yaml")
    index = OperationIndex.build(load_spec("openapi.yaml"))

Sub-modules:

* :mod:`~callspec.parser.loader` -- file I/O and format detection.
* :mod:`~callspec.parser.resolver` -- internal ``$ref`` inlining.
* :mod:`~callspec.parser.operations` -- the operationId index.
"""

from callspec.parser.loader import load_file, load_spec, load_suite, load_yaml_file
from callspec.parser.operations import OperationIndex

__all__ = ["load_file", "load_yaml_file", "load_suite", "load_spec", "OperationIndex"]
