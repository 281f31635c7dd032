"""Graph fingerprinting.

A run's fingerprint is sha256 over the canonical JSON of its graph (sorted
keys, no whitespace). Two runs over an unchanged tree yield the same value,
so a re-sync only needs to act when the fingerprint moves.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from core.graph import ProjectGraph


def canonical_json_bytes(obj: Any) -> bytes:
    """Canonical JSON bytes (sorted keys, no whitespace)."""

    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class GraphFingerprint:
    value: str
    entity_count: int
    edge_count: int


def graph_fingerprint(graph: ProjectGraph) -> GraphFingerprint:
    digest = sha256_hex(canonical_json_bytes(graph.to_dict()))
    return GraphFingerprint(
        value=f"graph:{digest}",
        entity_count=len(graph.entities),
        edge_count=len(graph.edges),
    )
