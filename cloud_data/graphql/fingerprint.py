"""
Request fingerprinting.

A fingerprint identifies a (document, variables) pair. It keys both the
cache lookup and request coalescing, so two requests that differ only in
the key order of their variables must fingerprint identically.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

from .models import QueryRequest


def stringify_variables(value: Any) -> str:
    """
    Serialize ``value`` into a canonical, key-order-independent string.

    Mapping keys are sorted at every depth, set members are sorted by their
    own canonical form, and anything JSON cannot represent falls back to its
    string form.
    """
    if isinstance(value, Mapping):
        items = sorted(
            ((str(key), item) for key, item in value.items()), key=lambda kv: kv[0]
        )
        return (
            "{"
            + ",".join(f"{json.dumps(key)}:{stringify_variables(item)}" for key, item in items)
            + "}"
        )

    if isinstance(value, (list, tuple)):
        return "[" + ",".join(stringify_variables(item) for item in value) + "]"

    if isinstance(value, (set, frozenset)):
        return "[" + ",".join(sorted(stringify_variables(item) for item in value)) + "]"

    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return json.dumps(str(value))


def document_hash(document: str) -> str:
    """SHA-1 content hash of a document's raw text."""
    return hashlib.sha1(document.encode("utf-8")).hexdigest()


def fingerprint(request: QueryRequest) -> str:
    """
    Compute the fingerprint of a request.

    A precomputed ``operation_hash`` is trusted as the document identity;
    otherwise the document text is hashed.
    """
    identity = request.operation_hash or document_hash(request.document)
    return f"{identity}-{stringify_variables(request.variables)}"
