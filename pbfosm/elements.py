"""OSM elements and their encoding into primitive blocks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum

from pbfosm.coordinates import delta_encode_coordinates
from pbfosm.string_table import StringTable
from pbfosm.wire import (
    Info,
    field_bytes,
    field_varint,
    packed_sint64,
    packed_varints,
)


class MemberType(IntEnum):
    """Kind of element a relation member refers to."""

    NODE = 0
    WAY = 1
    RELATION = 2


@dataclass
class Member:
    """One element taking part in a relation."""

    id: int
    type: MemberType = MemberType.NODE
    role: str = ""


@dataclass
class Node:
    """An OSM node; coordinates are in degrees."""

    id: int
    latitude: float
    longitude: float
    tags: dict[str, str] = field(default_factory=dict)
    info: Info | None = None


@dataclass
class Way:
    """An OSM way: an ordered list of node ids."""

    id: int
    tags: dict[str, str] = field(default_factory=dict)
    node_ids: list[int] = field(default_factory=list)
    info: Info | None = None


@dataclass
class Relation:
    """An OSM relation grouping other elements under roles."""

    id: int
    tags: dict[str, str] = field(default_factory=dict)
    members: list[Member] = field(default_factory=list)
    info: Info | None = None


def delta_encode(values: Iterable[int]) -> list[int]:
    """Keep the first value and replace each later one by its difference from the previous."""
    result: list[int] = []
    previous = 0
    for value in values:
        result.append(value - previous)
        previous = value
    return result


def _primitive_block(table: StringTable, group: bytes, extra: bytes = b"") -> bytes:
    return field_bytes(1, table.to_bytes()) + field_bytes(2, group) + extra


def nodes_block(nodes: Sequence[Node]) -> bytes:
    """Encode nodes as a PrimitiveBlock holding one group of dense nodes."""
    nodes = list(nodes)
    table = StringTable()
    for node in nodes:
        for key, value in node.tags.items():
            table.add(key)
            table.add(value)
        table.end_one()

    coords = delta_encode_coordinates(
        [n.latitude for n in nodes], [n.longitude for n in nodes]
    )
    versions = [
        n.info.version if n.info is not None and n.info.version is not None else 0
        for n in nodes
    ]
    timestamps = [
        n.info.timestamp if n.info is not None and n.info.timestamp is not None else 0
        for n in nodes
    ]
    dense_info = packed_varints(1, versions) + packed_sint64(2, timestamps)
    dense = b"".join(
        (
            packed_sint64(1, delta_encode(n.id for n in nodes)),
            field_bytes(5, dense_info),
            packed_sint64(8, delta_encode(coords.lats)),
            packed_sint64(9, delta_encode(coords.lons)),
            packed_varints(10, table.to_keys_vals()),
        )
    )
    extra = (
        field_varint(17, coords.granularity)
        + field_varint(19, coords.lat_offset)
        + field_varint(20, coords.lon_offset)
    )
    return _primitive_block(table, field_bytes(2, dense), extra)


def _info_field(info: Info | None) -> bytes:
    return b"" if info is None else field_bytes(4, info.to_bytes())


def ways_block(ways: Sequence[Way]) -> bytes:
    """Encode ways as a PrimitiveBlock holding one group of ways."""
    table = StringTable()
    encoded = []
    for way in ways:
        keys, values = table.add_tags(way.tags)
        message = b"".join(
            (
                field_varint(1, way.id),
                packed_varints(2, keys),
                packed_varints(3, values),
                _info_field(way.info),
                packed_sint64(8, delta_encode(way.node_ids)),
            )
        )
        encoded.append(field_bytes(3, message))
    return _primitive_block(table, b"".join(encoded))


def relations_block(relations: Sequence[Relation]) -> bytes:
    """Encode relations as a PrimitiveBlock holding one group of relations."""
    table = StringTable()
    encoded = []
    for relation in relations:
        keys, values = table.add_tags(relation.tags)
        roles = table.add_roles(m.role for m in relation.members)
        message = b"".join(
            (
                field_varint(1, relation.id),
                packed_varints(2, keys),
                packed_varints(3, values),
                _info_field(relation.info),
                packed_varints(8, roles),
                packed_sint64(9, delta_encode(m.id for m in relation.members)),
                packed_varints(10, (int(m.type) for m in relation.members)),
            )
        )
        encoded.append(field_bytes(4, message))
    return _primitive_block(table, b"".join(encoded))