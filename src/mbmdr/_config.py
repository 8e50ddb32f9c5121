"""Risk-baseline configuration for the mbmdr package.

Controls which reference probability a cell's case rate is compared
against when it is labelled high- or low-risk:

* ``"mu"`` — the overall case probability of the dataset (default).
* ``"out_of_cell"`` — the case probability of all observations *not*
  in the cell.

Both baselines produce the same labels whenever the out-of-cell
probability is defined; the choice only changes which quantity is
reported as the comparison reference.

Resolution order (first match wins):
    1. An explicit ``baseline=`` argument to the model.
    2. Programmatic override via :func:`set_baseline`.
    3. The ``MBMDR_BASELINE`` environment variable.
    4. ``"mu"``.

Valid names are ``"mu"`` and ``"out_of_cell"`` (case-insensitive).

Examples:
    Switch globally from the shell::

        export MBMDR_BASELINE=out_of_cell

    Switch programmatically::

        import mbmdr
        mbmdr.set_baseline("out_of_cell")

    Restore the default resolution order::

        mbmdr.set_baseline("auto")
"""

from __future__ import annotations

import os

_VALID_BASELINES = {"mu", "out_of_cell", "auto"}

_DEFAULT_BASELINE = "mu"

# Sentinel indicating "no programmatic override has been set".
_baseline_override: str | None = None


def _normalise(name: str) -> str:
    normalised = name.strip().lower()
    if normalised not in _VALID_BASELINES:
        raise ValueError(
            f"Unknown baseline '{name}'. Choose from: {sorted(_VALID_BASELINES)}"
        )
    return normalised


def get_baseline(name: str | None = None) -> str:
    """Return the active baseline name (``"mu"`` or ``"out_of_cell"``).

    Args:
        name: Optional explicit choice, typically the model's
            ``baseline=`` argument.  ``None`` or ``"auto"`` defer to
            the global resolution order.

    Returns:
        ``"mu"`` or ``"out_of_cell"``.

    Raises:
        ValueError: If *name* is not a recognised baseline.
    """
    # 1. Explicit argument
    if name is not None:
        explicit = _normalise(name)
        if explicit != "auto":
            return explicit

    # 2. Programmatic override
    if _baseline_override is not None and _baseline_override != "auto":
        return _baseline_override

    # 3. Environment variable
    env = os.environ.get("MBMDR_BASELINE", "").strip().lower()
    if env in ("mu", "out_of_cell"):
        return env

    # 4. Default
    return _DEFAULT_BASELINE


def set_baseline(name: str) -> None:
    """Override the baseline selection.

    Args:
        name: One of ``"mu"``, ``"out_of_cell"``, or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised baseline.
    """
    global _baseline_override
    _baseline_override = _normalise(name)
