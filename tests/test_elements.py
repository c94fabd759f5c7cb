from itertools import accumulate

import pytest

from pbfosm.elements import (
    Member,
    MemberType,
    Node,
    Relation,
    Way,
    delta_encode,
    nodes_block,
    relations_block,
    ways_block,
)
from pbfosm.wire import Info


# --- a minimal protocol-buffer reader for checking the output ---


def _varint(data, pos):
    result = shift = 0
    while True:
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def _fields(data):
    pos = 0
    out = []
    while pos < len(data):
        key, pos = _varint(data, pos)
        number, wire_type = key >> 3, key & 7
        if wire_type == 0:
            value, pos = _varint(data, pos)
        elif wire_type == 2:
            length, pos = _varint(data, pos)
            value = data[pos : pos + length]
            pos += length
        else:
            raise AssertionError(f"unexpected wire type {wire_type}")
        out.append((number, value))
    return out


def _all(fields, number):
    return [v for n, v in fields if n == number]


def _first(fields, number, default=b""):
    values = _all(fields, number)
    return values[0] if values else default


def _packed(data):
    pos = 0
    out = []
    while pos < len(data):
        value, pos = _varint(data, pos)
        out.append(value)
    return out


def _unzig(n):
    return (n >> 1) ^ -(n & 1)


def _signed(n):
    return n - (1 << 64) if n >= 1 << 63 else n


def _block(data):
    fields = _fields(data)
    strings = [s.decode("utf-8") for s in _all(_fields(_first(fields, 1)), 1)]
    groups = [_fields(g) for g in _all(fields, 2)]
    return fields, strings, groups


def _decode_nodes(data):
    fields, strings, groups = _block(data)
    granularity = _first(fields, 17, 100)
    lat_offset = _signed(_first(fields, 19, 0))
    lon_offset = _signed(_first(fields, 20, 0))
    dense = _fields(_first(groups[0], 2))
    ids = list(accumulate(_unzig(v) for v in _packed(_first(dense, 1))))
    lats = list(accumulate(_unzig(v) for v in _packed(_first(dense, 8))))
    lons = list(accumulate(_unzig(v) for v in _packed(_first(dense, 9))))
    keys_vals = _packed(_first(dense, 10))
    tag_sets = []
    current = {}
    it = iter(keys_vals)
    for k in it:
        if k == 0:
            tag_sets.append(current)
            current = {}
            continue
        current[strings[k]] = strings[next(it)]
    info = _fields(_first(dense, 5))
    versions = _packed(_first(info, 1))
    timestamps = [_unzig(v) for v in _packed(_first(info, 2))]
    nodes = [
        (
            i,
            1e-9 * (lat_offset + granularity * la),
            1e-9 * (lon_offset + granularity * lo),
            tags,
        )
        for i, la, lo, tags in zip(ids, lats, lons, tag_sets)
    ]
    return nodes, versions, timestamps, strings


def _decode_tags(fields, strings):
    keys = _packed(_first(fields, 2))
    vals = _packed(_first(fields, 3))
    return {strings[k]: strings[v] for k, v in zip(keys, vals)}


def _decode_ways(data):
    _, strings, groups = _block(data)
    ways = []
    for raw in _all(groups[0], 3):
        f = _fields(raw)
        refs = list(accumulate(_unzig(v) for v in _packed(_first(f, 8))))
        ways.append((_signed(_first(f, 1, 0)), _decode_tags(f, strings), refs, f))
    return ways


def _decode_relations(data):
    _, strings, groups = _block(data)
    relations = []
    for raw in _all(groups[0], 4):
        f = _fields(raw)
        roles = [strings[i] for i in _packed(_first(f, 8))]
        ids = list(accumulate(_unzig(v) for v in _packed(_first(f, 9))))
        types = _packed(_first(f, 10))
        members = list(zip(ids, types, roles))
        relations.append((_signed(_first(f, 1, 0)), _decode_tags(f, strings), members))
    return relations


# --- fixtures taken over from the source tests ---

NODES = [
    Node(7278995748, -7.2380901, 112.6773289, {"node": "node1", "erp": "no"}),
    Node(6978510772, -7.2381273, 112.6775354),
    Node(
        6978510773,
        -7.2383685,
        112.6782548,
        {"node": "node3", "align": "way", "emptyValue": "", "erp": "yes"},
    ),
    Node(
        6978510774,
        -7.2383445,
        112.6734548,
        {"node": "node3", "align": "way", "emptyValue": "", "ref": "0"},
    ),
]

WAYS = [
    Way(9650669, {"k1": "v1", "k2": "v2"}, [75385503, 75390364, 75390426, 1116369070]),
    Way(
        9650692,
        {"k3": "v3", "k4": "v4", "k5": "v5"},
        [603386705, 75444477, 760790597, 760790382, 760790527, 75444457],
    ),
    Way(11750310, {"k6": "v6", "emptyValue": ""}, [105207733, 105207737, 105207726]),
    Way(
        11750349,
        {"k7": "v7", "k8": "v8", "k9": "v9", "k10": "v10"},
        [
            105208152,
            105208155,
            105208157,
            105208163,
            105208165,
            105208167,
            105208168,
            105208174,
            2363909540,
        ],
    ),
]

RELATIONS = [
    Relation(
        437710,
        {"currency": "IDR", "city_code": "SUB", "gantry:price:car": "8000.00"},
        [Member(260114973, MemberType.NODE, "from"), Member(1780865796, MemberType.NODE, "to")],
    ),
    Relation(436226, members=[Member(2418135255, MemberType.NODE, "through")]),
    Relation(
        2000143,
        {
            "restriction": "no_left_turn",
            "start_date": "2017-01-01",
            "end_date": "9999-12-31",
            "city_code": "KNO",
            "emptyValue": "",
        },
        [
            Member(3354491584, MemberType.NODE, "to"),
            Member(3354491587, MemberType.NODE, "via"),
            Member(5416035667, MemberType.NODE, "from"),
        ],
    ),
]


def test_delta_encode_values():
    assert delta_encode([5, 7, 4]) == [5, 2, -3]


def test_delta_encode_empty():
    assert delta_encode([]) == []


def test_member_type_values_written_to_block():
    relation = Relation(
        1,
        members=[
            Member(1, MemberType.NODE, "a"),
            Member(2, MemberType.WAY, "b"),
            Member(3, MemberType.RELATION, "c"),
        ],
    )
    ((_, _, members),) = _decode_relations(relations_block([relation]))
    assert [t for _, t, _ in members] == [0, 1, 2]


def test_nodes_round_trip():
    decoded, _, _, _ = _decode_nodes(nodes_block(NODES))
    assert len(decoded) == 4
    for (node_id, lat, lon, tags), node in zip(decoded, NODES):
        assert node_id == node.id
        assert lat == pytest.approx(node.latitude, abs=0.001)
        assert lon == pytest.approx(node.longitude, abs=0.001)
        assert tags == node.tags


def test_nodes_without_tags_have_only_separators():
    _, _, _, strings = _decode_nodes(nodes_block([Node(1, 1.5, 2.5)]))
    fields, _, groups = _block(nodes_block([Node(1, 1.5, 2.5)]))
    dense = _fields(_first(groups[0], 2))
    assert _packed(_first(dense, 10)) == [0]
    assert strings == [""]


def test_nodes_exact_coordinates():
    decoded, _, _, _ = _decode_nodes(nodes_block([Node(1, 1.5, 2.5), Node(2, -3.25, 4.0)]))
    assert [(i, round(la, 9), round(lo, 9)) for i, la, lo, _ in decoded] == [
        (1, 1.5, 2.5),
        (2, -3.25, 4.0),
    ]


def test_nodes_dense_info_version_and_timestamp():
    nodes = [
        Node(1, 1.0, 1.0, info=Info(version=3, timestamp=1600000000)),
        Node(2, 1.0, 1.0),
    ]
    _, versions, timestamps, _ = _decode_nodes(nodes_block(nodes))
    assert versions == [3, 0]
    assert timestamps == [1600000000, 0]


def test_ways_round_trip():
    decoded = _decode_ways(ways_block(WAYS))
    assert len(decoded) == 4
    for (way_id, tags, refs, _), way in zip(decoded, WAYS):
        assert way_id == way.id
        assert tags == way.tags
        assert refs == way.node_ids


def test_way_info_is_written_when_present():
    decoded = _decode_ways(ways_block([Way(1, info=Info(version=7)), Way(2)]))
    first_info = _fields(_first(decoded[0][3], 4))
    assert first_info == [(1, 7)]
    assert _all(decoded[1][3], 4) == []


def test_ways_empty_block_has_no_ways():
    assert _decode_ways(ways_block([])) == []


def test_relations_round_trip():
    decoded = _decode_relations(relations_block(RELATIONS))
    assert len(decoded) == 3
    for (rel_id, tags, members), relation in zip(decoded, RELATIONS):
        assert rel_id == relation.id
        assert tags == relation.tags
        assert members == [(m.id, int(m.type), m.role) for m in relation.members]


def test_relation_member_types():
    relation = Relation(
        9,
        members=[
            Member(10, MemberType.WAY, "outer"),
            Member(11, MemberType.RELATION, "sub"),
            Member(12, MemberType.NODE, "label"),
        ],
    )
    ((_, _, members),) = _decode_relations(relations_block([relation]))
    assert members == [(10, 1, "outer"), (11, 2, "sub"), (12, 0, "label")]


def test_relation_id_out_of_range_raises():
    with pytest.raises(ValueError):
        relations_block([Relation(1 << 70)])