"""Defaults-block merge."""

from __future__ import annotations

import copy
from typing import Any

from rangegen.log_config import get_logger

logger = get_logger(__name__)


def merge_defaults(
    existing_config: dict[str, Any] | None,
    overrides: dict[str, Any] | None,
    baseline: dict[str, Any],
) -> dict[str, Any]:
    """Return the ``defaults`` block of a compiled configuration.

    Starts from a deep copy of ``existing_config["defaults"]`` when the
    previous configuration carries one, else from ``baseline``. ``overrides``
    are laid over the top; keys they do not mention keep their value.

    Args:
        existing_config: Previously saved configuration, if any.
        overrides: Caller-supplied values that win on key collision.
        baseline: Block used when there is no previous ``defaults``.

    Returns:
        A new mapping; none of the arguments are modified.
    """
    existing = None
    if isinstance(existing_config, dict):
        existing = existing_config.get("defaults")

    if isinstance(existing, dict):
        merged = copy.deepcopy(existing)
        logger.debug(f"Merging defaults from existing configuration ({len(merged)} keys)")
    else:
        merged = copy.deepcopy(baseline)

    if overrides:
        for key, value in overrides.items():
            merged[key] = copy.deepcopy(value)
    return merged
