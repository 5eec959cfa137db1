# !/usr/bin/python
# coding=utf-8
"""Hard failures raised by matdoctk.

Integrity problems found in a graph are never raised; they are returned as
:class:`~matdoctk.graph_utils.IssueRecord` values inside a diagnosis.  The
exceptions below are reserved for collaborators that cannot do their job.
"""


class IntegrityError(RuntimeError):
    """Base class for failures that abort a whole pass."""


class StoreError(IntegrityError):
    """The content store could not be read or written."""


class EmptyIndexError(IntegrityError):
    """The asset index holds neither textures nor materials."""


class PatchError(IntegrityError):
    """A patch references a node, slot or material that does not exist."""


class RuleConfigError(ValueError):
    """The rule configuration file is malformed."""
