from __future__ import annotations

import pytest

from qcp_browser.entry import (
    DIRECTORY_BIT,
    PARENT_ENTRY,
    RemoteEntry,
    Triad,
    decode_mode,
    entries_to_wire,
    parse_entries,
    render_mode_string,
    render_permission_string,
    with_parent,
)
from qcp_browser.errors import ProtocolError


def test_decode_mode_plain_file() -> None:
    info = decode_mode(0o644)
    assert not info.is_directory
    assert info.owner == Triad(True, True, False)
    assert info.group == Triad(True, False, False)
    assert info.other == Triad(True, False, False)


def test_decode_mode_directory_bit_is_bit_31() -> None:
    assert decode_mode(DIRECTORY_BIT).is_directory
    assert decode_mode(2147484096).is_directory  # directory + 0700
    assert not decode_mode(1 << 30).is_directory


def test_decode_mode_signed_view_of_directory_bit() -> None:
    # the same bits seen as a signed 32-bit integer
    info = decode_mode(-(1 << 31) | 0o755)
    assert info.is_directory
    assert info.owner == Triad(True, True, True)
    assert info.other == Triad(True, False, True)


@pytest.mark.parametrize("bits", [0, 0o777, 0o1777, 0o4755, 0x7FFFFE00, 0xFFFFFFFF, -1, 12345678])
def test_decode_mode_ignores_unused_bits(bits: int) -> None:
    info = decode_mode(bits)
    assert info.is_directory == (((bits >> 31) & 1) != 0)
    for shift, triad in ((6, info.owner), (3, info.group), (0, info.other)):
        group = (bits >> shift) & 0b111
        assert triad == Triad(bool(group & 4), bool(group & 2), bool(group & 1))


@pytest.mark.parametrize(
    "triad, expected",
    [
        (Triad(False, False, False), "---"),
        (Triad(True, False, False), "r--"),
        (Triad(False, True, False), "-w-"),
        (Triad(False, False, True), "--x"),
        (Triad(True, True, True), "rwx"),
    ],
)
def test_render_permission_string(triad: Triad, expected: str) -> None:
    assert render_permission_string(triad) == expected


def test_render_mode_string_matches_long_listing() -> None:
    assert render_mode_string(420) == "-rw-r--r--"
    assert render_mode_string(2147484096) == "drwx------"
    assert render_mode_string(DIRECTORY_BIT) == "d---------"


@pytest.mark.parametrize("bits", [0, 0o777, 0xFFFFFFFF, -1, 2147484096, 0x12345678])
def test_render_mode_string_is_fixed_width(bits: int) -> None:
    out = render_mode_string(bits)
    assert len(out) == 10
    assert out[0] in "d-"
    for i, ch in enumerate(out[1:]):
        assert ch in ("r-", "w-", "x-")[i % 3]


def test_remote_entry_properties_and_wire_form() -> None:
    entry = RemoteEntry(name="a.txt", mode=420)
    assert not entry.is_directory
    assert not entry.is_parent
    assert entry.mode_string == "-rw-r--r--"
    assert entry.to_wire() == '{"name":"a.txt","mode":420}'


def test_parent_entry_is_a_bare_directory() -> None:
    assert PARENT_ENTRY.name == ".."
    assert PARENT_ENTRY.mode == DIRECTORY_BIT
    assert PARENT_ENTRY.is_directory
    assert PARENT_ENTRY.is_parent


def test_parse_entries_keeps_server_order_and_ignores_extra_keys() -> None:
    entries = parse_entries('[{"name":"b","mode":1,"size":10},{"name":"a","mode":2147483648}]')
    assert [e.name for e in entries] == ["b", "a"]
    assert entries[1].is_directory


def test_with_parent_always_puts_parent_first() -> None:
    entries = parse_entries('[{"name":"z","mode":0},{"name":"..","mode":0}]')
    listing = with_parent(entries)
    assert listing[0] == PARENT_ENTRY
    assert len(listing) == 3


def test_parse_entries_empty_array() -> None:
    assert parse_entries("[]") == ()


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"name":"a","mode":1}',
        '[{"name":"a"}]',
        '[{"mode":1}]',
        '[{"name":"a","mode":"420"}]',
        '[{"name":"a","mode":1.5}]',
        '[{"name":"a","mode":true}]',
        '[{"name":1,"mode":1}]',
        '[{"name":"a","mode":4294967296}]',
        '[{"name":"a","mode":1}, 7]',
    ],
)
def test_parse_entries_rejects_malformed_payloads(raw: str) -> None:
    with pytest.raises(ProtocolError) as info:
        parse_entries(raw)
    assert info.value.verb == "list"


def test_entries_to_wire_is_compact_json_array() -> None:
    entries = [RemoteEntry(name="a", mode=1), RemoteEntry(name="b", mode=2)]
    assert entries_to_wire(entries) == '[{"name":"a","mode":1},{"name":"b","mode":2}]'


def test_entries_are_hashable_values() -> None:
    assert RemoteEntry(name="a", mode=1) == RemoteEntry(name="a", mode=1)
    assert len({RemoteEntry(name="a", mode=1), RemoteEntry(name="a", mode=1)}) == 1


def test_parse_entries_accepts_go_field_names() -> None:
    entries = parse_entries('[{"Name":"sub","Mode":2147484096},{"Name":"a.txt","Mode":420}]')
    assert entries == (RemoteEntry(name="sub", mode=2147484096), RemoteEntry(name="a.txt", mode=420))
    assert entries[0].to_wire() == '{"name":"sub","mode":2147484096}'
