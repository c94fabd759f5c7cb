# pbfosm

`pbfosm` writes OpenStreetMap data in the PBF format. You give it nodes, ways and relations. It groups them into primitive blocks, delta-encodes ids and coordinates, and writes the blobs to any binary file-like object. Each blob is compressed with zlib unless you turn that off.

The package has no runtime dependencies. It encodes the protobuf wire format itself.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

```python
from pbfosm.elements import Node, Way, Relation, Member, MemberType
from pbfosm.encoder import Encoder

nodes = [
    Node(id=1, latitude=-7.2380901, longitude=112.6773289, tags={"erp": "no"}),
    Node(id=2, latitude=-7.2381273, longitude=112.6775354),
]
ways = [Way(id=10, tags={"highway": "residential"}, node_ids=[1, 2])]
relations = [
    Relation(
        id=100,
        tags={"restriction": "no_left_turn"},
        members=[Member(id=1, type=MemberType.NODE, role="from")],
    ),
]

with open("out.osm.pbf", "wb") as out:
    with Encoder(out, required_features=["OsmSchema-V0.6"],
                 writing_program="example") as encoder:
        encoder.append_nodes(nodes)
        encoder.append_ways(ways)
        encoder.append_relations(relations)
```

### Starting and closing

`start()` writes the file header. Entering the `with` block calls it for you. If you append or flush before starting, or after closing, the encoder raises `RuntimeError`. Calling `start()` a second time also raises `RuntimeError`.

`close()` does two things:

- It writes every buffered element.
- It closes the writer it was given.

If you close the encoder a second time, or flush after closing, it logs a warning and does nothing else.

### Buffering

Appended elements are buffered separately for nodes, ways and relations. A buffer that already holds elements is written out as one primitive block when the next batch would take it past 8000 elements (`pbfosm.encoder.DEFAULT_GROUP_LIMIT`). The new batch then starts a fresh buffer.

To write the pending elements of one kind at once, call `encoder.flush(MemberType.NODE)`. Use `MemberType.WAY` or `MemberType.RELATION` for the other kinds.

### Encoder options

Besides `writer` and `required_features`, `Encoder` takes these keyword arguments:

- `optional_features`: strings stored in the header.
- `writing_program`: stored in the header when not empty.
- `bbox`: a `pbfosm.wire.HeaderBBox(left, right, top, bottom)`, in nanodegrees. It is stored in the header and does not filter data.
- `enable_zlib`: compress blobs with zlib. Default `True`. When `False`, blobs are stored raw.
- `logger`: a `logging.Logger`. Defaults to the `pbfosm` logger.

### Elements

- `Node(id, latitude, longitude, tags, info)`: coordinates are in degrees.
- `Way(id, tags, node_ids, info)`
- `Relation(id, tags, members, info)`, whose members are `Member(id, type, role)`.

`info` is an optional `pbfosm.wire.Info`. Ways and relations write every field of it that is set. Nodes are written as dense nodes and carry only `version` and `timestamp`; these are written as 0 when unset.

For dense nodes, coordinates are first truncated to nanodegrees. The granularity is then the largest power of ten, up to 10^9, that divides every non-zero value.

### Lower-level pieces

`pbfosm.elements.nodes_block`, `ways_block` and `relations_block` each return the encoded bytes of one primitive block. The supporting modules are:

- `pbfosm.coordinates` (`delta_encode_coordinates`, `delta_encode_with_fixed_granularity`)
- `pbfosm.string_table` (`StringTable`)
- `pbfosm.wire` (varint and field encoders)

## What it does not do

The package only writes PBF files. It does not read or decode them, and it has no command-line tool.