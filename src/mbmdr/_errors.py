"""Exception hierarchy for structural failures of a fitting run.

Both concrete errors subclass :class:`ValueError` so that callers who
already catch ``ValueError`` around input validation keep working,
while callers that need to tell the two apart can catch them
individually:

* :class:`InputShapeError` — the *shape* of the request is wrong
  (selection length, duplicate or out-of-range feature indices, an
  empty dataset).  Raised before any counting starts.
* :class:`DataDomainError` — the *values* are wrong (a genotype code
  outside its cardinality, a non-binary outcome).  Raised during
  indexing or counting; the run produces no result.

Degenerate-but-valid inputs (empty cells, an empty risk group, no cases
at all) are never errors.
"""

from __future__ import annotations


class MBMDRError(ValueError):
    """Base class for every structural error raised by the package."""


class InputShapeError(MBMDRError):
    """The dataset or feature selection has an invalid shape."""


class DataDomainError(MBMDRError):
    """A feature or outcome value lies outside its permitted domain."""


__all__ = ["DataDomainError", "InputShapeError", "MBMDRError"]
