"""Helpers for resolving runtime settings from the environment."""

from __future__ import annotations

import os
from typing import Literal, cast

__all__ = ["ErrorPolicy", "resolve_error_policy"]

ErrorPolicy = Literal["log", "raise"]

_VALID_POLICIES: tuple[str, ...] = ("log", "raise")


def resolve_error_policy(policy: str | None = None) -> ErrorPolicy:
    """Resolve how file-system failures are surfaced.

    Args:
        policy: Optional explicit policy. When omitted the
            ``SAFE_STORAGE_ERROR_POLICY`` environment variable is consulted.

    Returns:
        ``"log"`` (swallow and log, the default) or ``"raise"``.

    Raises:
        ValueError: If the chosen policy is not recognised.
    """

    chosen = policy
    env_policy = os.getenv("SAFE_STORAGE_ERROR_POLICY")
    if chosen is None and env_policy:
        chosen = env_policy.strip().lower()
    if chosen is None:
        chosen = "log"

    if chosen not in _VALID_POLICIES:
        raise ValueError(
            f"Invalid error policy: {chosen!r} (expected one of {_VALID_POLICIES})"
        )
    return cast(ErrorPolicy, chosen)
