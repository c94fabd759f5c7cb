"""String table shared by the elements of one primitive block."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pbfosm.wire import field_bytes

_END_OF_ELEMENT = None


class StringTable:
    """Collects the strings of a block and hands out their indices.

    Index 0 holds the empty string and is never handed out by :meth:`add`,
    so that 0 can separate the elements in a dense-node key/value list.
    """

    def __init__(self) -> None:
        self.strings: list[str] = [""]
        self._index: dict[str, int] = {}
        self._sequence: list[str | None] = []

    # Dense nodes

    def add(self, text: str) -> None:
        """Record a key or value of the current dense node."""
        if text not in self._index:
            self.strings.append(text)
            self._index[text] = len(self.strings) - 1
        self._sequence.append(text)

    def index(self, text: str) -> int:
        """Return the index given to ``text`` by :meth:`add`, or -1."""
        return self._index.get(text, -1)

    def end_one(self) -> None:
        """Mark the end of the current dense node's tags."""
        self._sequence.append(_END_OF_ELEMENT)

    def to_keys_vals(self) -> list[int]:
        """Return the dense-node key/value index list, 0 ending each node."""
        return [0 if text is _END_OF_ELEMENT else self.index(text) for text in self._sequence]

    # Ways and relations

    def add_tags(self, tags: Mapping[str, str]) -> tuple[list[int], list[int]]:
        """Store the tags and return the key indices and the value indices."""
        keys: list[int] = []
        values: list[int] = []
        for key, value in tags.items():
            keys.append(self.append(key))
            values.append(self.append(value))
        return keys, values

    def append(self, text: str) -> int:
        """Return the index of ``text``, adding it unless :meth:`add` already did."""
        if text in self._index:
            return self._index[text]
        self.strings.append(text)
        return len(self.strings) - 1

    def add_roles(self, roles: Iterable[str]) -> list[int]:
        """Store relation member roles and return their indices."""
        return [self.append(role) for role in roles]

    def to_bytes(self) -> bytes:
        """Encode as a StringTable message."""
        return b"".join(field_bytes(1, s.encode("utf-8")) for s in self.strings)