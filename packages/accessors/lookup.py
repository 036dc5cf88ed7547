"""Binding and metadata lookups for a single Semgrep match.

Binding names are forgiving: a single leading ``$`` is optional and letter
case is ignored, so ``uses``, ``$USES`` and ``$Uses`` all name the same
metavariable. Metadata keys belong to the rule author and are matched exactly.
"""
from __future__ import annotations

from typing import List

from pydantic import JsonValue

from packages.schema.models import Match, MetavarValue

SIGIL = "$"


class LookupFailure(LookupError):
    """Base class for failed lookups on a match."""

    def __init__(self, name: str, rule_id: str, message: str):
        super().__init__(message)
        self.name = name
        self.rule_id = rule_id


class BindingNotFound(LookupFailure):
    def __init__(self, name: str, rule_id: str):
        super().__init__(name, rule_id, f"metavariable '{name}' not found in match for rule '{rule_id}'")


class AmbiguousBinding(LookupFailure):
    """More than one metavariable on the match shares a canonical name."""

    def __init__(self, name: str, rule_id: str, candidates: List[str]):
        super().__init__(
            name,
            rule_id,
            f"metavariable '{name}' is ambiguous in match for rule '{rule_id}': {sorted(candidates)}",
        )
        self.candidates = sorted(candidates)


class MetadataKeyNotFound(LookupFailure):
    def __init__(self, name: str, rule_id: str):
        super().__init__(name, rule_id, f"metadata key '{name}' not found in match for rule '{rule_id}'")


def _fold(name: str) -> str:
    # Per-character upper case; characters whose upper form is longer (ß) stay as is.
    stripped = name[1:] if name.startswith(SIGIL) else name
    return "".join(ch.upper() if len(ch.upper()) == 1 else ch for ch in stripped)


def canonical_name(name: str) -> str:
    """Strip one leading sigil and upper-case ``name``."""

    folded = _fold(name)
    if not folded:
        raise ValueError(f"invalid metavariable name: {name!r}")
    return folded


def find_binding(match: Match, name: str) -> MetavarValue:
    """Return the binding on ``match`` whose canonical name equals ``name``'s."""

    wanted = canonical_name(name)
    candidates = [key for key in match.bindings if _fold(key) == wanted]
    if not candidates:
        raise BindingNotFound(name, match.rule_id)
    if len(candidates) > 1:
        raise AmbiguousBinding(name, match.rule_id, candidates)
    return match.bindings[candidates[0]]


def resolve_binding(match: Match, name: str) -> str:
    """Resolve ``name`` to the propagated value of the binding, else its matched text."""

    return find_binding(match, name).value


def resolve_metadata(match: Match, key: str) -> JsonValue:
    """Return the raw metadata value stored under ``key``.

    No path traversal is done: ``"a.b"`` only matches a literal ``"a.b"`` key.
    """

    try:
        return match.metadata[key]
    except KeyError:
        raise MetadataKeyNotFound(key, match.rule_id) from None


__all__ = [
    "AmbiguousBinding",
    "BindingNotFound",
    "LookupFailure",
    "MetadataKeyNotFound",
    "canonical_name",
    "find_binding",
    "resolve_binding",
    "resolve_metadata",
]
