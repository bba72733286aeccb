from __future__ import annotations

import pytest

from qcp_browser import protocol
from qcp_browser.entry import RemoteEntry
from qcp_browser.errors import ProtocolError


def test_connect_frame_omits_missing_executable() -> None:
    assert protocol.connect("h", "/").encode() == 'connect {"hostname":"h","location":"/"}'


def test_connect_frame_with_executable() -> None:
    frame = protocol.connect("me@box:2222", "~", "/opt/qcp/bin/qcp").encode()
    assert frame == 'connect {"hostname":"me@box:2222","location":"~","executable":"/opt/qcp/bin/qcp"}'


def test_bare_commands_have_no_payload() -> None:
    assert protocol.list_files().encode() == "list"
    assert protocol.disconnect().encode() == "disconnect"


def test_entry_commands_carry_name_and_mode_only() -> None:
    entry = RemoteEntry(name="a.txt", mode=420)
    assert protocol.enter(entry).encode() == 'enter {"name":"a.txt","mode":420}'
    assert protocol.download(entry).encode() == 'download {"name":"a.txt","mode":420}'


def test_download_bulk_sends_one_array() -> None:
    entries = [RemoteEntry(name="a", mode=420), RemoteEntry(name="d", mode=2147483648)]
    assert protocol.download_bulk(entries).encode() == (
        'download-bulk [{"name":"a","mode":420},{"name":"d","mode":2147483648}]'
    )


def test_split_frame_uses_first_space_only() -> None:
    assert protocol.split_frame("entered /home/me/My Files") == ("entered", "/home/me/My Files")
    assert protocol.split_frame("connected") == ("connected", None)
    assert protocol.split_frame("entered ") == ("entered", "")


def test_decode_simple_events() -> None:
    assert protocol.decode_event("connected") == protocol.Connected()
    assert protocol.decode_event("disconnected") == protocol.Disconnected()


def test_decode_listing() -> None:
    event = protocol.decode_event('list [{"name":"a.txt","mode":420},{"name":"sub","mode":2147484096}]')
    assert isinstance(event, protocol.Listed)
    assert [e.name for e in event.entries] == ["a.txt", "sub"]
    assert event.entries[1].is_directory


def test_decode_entered_with_and_without_path() -> None:
    assert protocol.decode_event("entered") == protocol.Entered(None)
    assert protocol.decode_event("entered /srv/data") == protocol.Entered("/srv/data")
    assert protocol.decode_event('entered "/srv/with space"') == protocol.Entered("/srv/with space")


def test_decode_download_link() -> None:
    assert protocol.decode_event("download https://host/files/a.txt") == protocol.DownloadLink(
        "https://host/files/a.txt"
    )
    assert protocol.decode_event('download "https://host/x"') == protocol.DownloadLink("https://host/x")


def test_decode_rejection_echo() -> None:
    assert protocol.decode_event("? frobnicate now") == protocol.Rejected("frobnicate now")


def test_verbs_match_exactly_not_by_prefix() -> None:
    assert isinstance(protocol.decode_event("download-bulk https://x"), protocol.Unknown)
    assert isinstance(protocol.decode_event("listing []"), protocol.Unknown)
    assert isinstance(protocol.decode_event("connectedness"), protocol.Unknown)
    assert isinstance(protocol.decode_event("connected extra"), protocol.Unknown)


def test_unknown_verb_is_not_an_error() -> None:
    event = protocol.decode_event("progress 50%")
    assert event == protocol.Unknown("progress", "progress 50%")


@pytest.mark.parametrize(
    "frame",
    [
        "list",
        "list not-json",
        'list {"name":"a","mode":1}',
        'list [{"name":"a"}]',
        "download",
        "download ",
        'download ""',
        'download "unterminated',
        'entered "unterminated',
    ],
)
def test_malformed_payloads_raise(frame: str) -> None:
    with pytest.raises(ProtocolError):
        protocol.decode_event(frame)


def test_bare_entered_text_is_taken_verbatim() -> None:
    assert protocol.decode_event('entered 42"') == protocol.Entered('42"')
