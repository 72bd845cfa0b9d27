#!/usr/bin/env python3
"""Encode the `json` metadata value describing vector tile layers.

Output shape (compact, keys in this order, optional keys omitted when unset)::

    {"vector_layers":[{"id":"roads","description":"...","minzoom":0,"maxzoom":14,
                       "fields":{"name":"String","lanes":"Number"}}]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import EncodingError


class FieldType(Enum):
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    STRING = "String"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VectorLayer:
    """Schema of one logical layer: id, optional description and zoom range, field types.

    The field mapping is copied on construction, so later changes to the
    caller's dict do not leak into the layer.
    """

    id: str
    fields: Dict[str, FieldType] = field(default_factory=dict)
    description: Optional[str] = None
    minzoom: Optional[int] = None
    maxzoom: Optional[int] = None

    def __post_init__(self) -> None:
        try:
            fields = dict(self.fields)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"layer {self.id!r}: fields must be a mapping, got {self.fields!r}") from exc
        object.__setattr__(self, "fields", fields)

    def __hash__(self) -> int:
        return hash((self.id, frozenset(self.fields.items()), self.description, self.minzoom, self.maxzoom))

    def with_description(self, description: str) -> "VectorLayer":
        return replace(self, description=description)

    def with_minzoom(self, minzoom: int) -> "VectorLayer":
        return replace(self, minzoom=minzoom)

    def with_maxzoom(self, maxzoom: int) -> "VectorLayer":
        return replace(self, maxzoom=maxzoom)

    def to_dict(self) -> Dict[str, Any]:
        """Ordered mapping for this layer; raises EncodingError on malformed input."""
        if not isinstance(self.id, str) or not self.id:
            raise EncodingError(f"vector layer id must be a non-empty string, got {self.id!r}")

        out: Dict[str, Any] = {"id": self.id}
        if self.description is not None:
            out["description"] = str(self.description)
        for key in ("minzoom", "maxzoom"):
            zoom = getattr(self, key)
            if zoom is None:
                continue
            if isinstance(zoom, bool) or not isinstance(zoom, int) or zoom < 0:
                raise EncodingError(f"layer {self.id!r}: {key} must be a non-negative int, got {zoom!r}")
            out[key] = zoom
        if self.minzoom is not None and self.maxzoom is not None and self.minzoom > self.maxzoom:
            raise EncodingError(
                f"layer {self.id!r}: minzoom {self.minzoom} is greater than maxzoom {self.maxzoom}"
            )

        fields: Dict[str, str] = {}
        for name, field_type in self.fields.items():
            if not isinstance(name, str):
                raise EncodingError(f"layer {self.id!r}: field name must be a string, got {name!r}")
            try:
                fields[name] = FieldType(field_type).value
            except ValueError as exc:
                raise EncodingError(
                    f"layer {self.id!r}: field {name!r} has unknown type {field_type!r}"
                ) from exc
        out["fields"] = fields
        return out


class MetadataJson:
    """The `{"vector_layers": [...]}` document stored as metadata `json`."""

    def __init__(self, *layers: VectorLayer) -> None:
        self.layers: Tuple[VectorLayer, ...] = tuple(layers)

    @classmethod
    def from_layers(cls, layers: Iterable[VectorLayer]) -> "MetadataJson":
        return cls(*layers)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        seen = set()
        encoded = []
        for layer in self.layers:
            if not isinstance(layer, VectorLayer):
                raise EncodingError(f"expected VectorLayer, got {type(layer).__name__}")
            item = layer.to_dict()
            if layer.id in seen:
                raise EncodingError(f"duplicate vector layer id {layer.id!r}")
            seen.add(layer.id)
            encoded.append(item)
        return {"vector_layers": encoded}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


__all__ = ["FieldType", "VectorLayer", "MetadataJson"]
