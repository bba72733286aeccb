# qcp_browser/entry.py
"""
Remote directory entries and Unix mode bits.

A server reports each entry as ``{"name": ..., "mode": ...}`` where ``mode``
is a 32-bit integer: bit 31 flags a directory and the low nine bits are the
usual owner/group/other permission triads. Nothing else in ``mode`` is
interpreted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Iterable, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter, ValidationError

from .errors import ProtocolError

DIRECTORY_BIT = 1 << 31
PARENT_NAME = ".."

# signed or unsigned 32-bit view of the same bits
_MODE_MIN = -(1 << 31)
_MODE_MAX = (1 << 32) - 1

Mode = Annotated[StrictInt, Field(ge=_MODE_MIN, le=_MODE_MAX)]


@dataclass(frozen=True)
class Triad:
	read: bool
	write: bool
	execute: bool

	@classmethod
	def from_bits(cls, bits: int) -> "Triad":
		return cls(bool(bits & 0b100), bool(bits & 0b010), bool(bits & 0b001))


@dataclass(frozen=True)
class ModeInfo:
	is_directory: bool
	owner: Triad
	group: Triad
	other: Triad


def is_directory(bits: int) -> bool:
	return (bits >> 31) & 1 != 0


def decode_mode(bits: int) -> ModeInfo:
	return ModeInfo(
		is_directory=is_directory(bits),
		owner=Triad.from_bits((bits >> 6) & 0b111),
		group=Triad.from_bits((bits >> 3) & 0b111),
		other=Triad.from_bits(bits & 0b111),
	)


def render_permission_string(triad: Triad) -> str:
	return ("r" if triad.read else "-") + ("w" if triad.write else "-") + ("x" if triad.execute else "-")


def render_mode_string(bits: int) -> str:
	"""Ten characters, like the first column of ``ls -l``."""
	info = decode_mode(bits)
	return ("d" if info.is_directory else "-") + "".join(
		render_permission_string(t) for t in (info.owner, info.group, info.other)
	)


class RemoteEntry(BaseModel):
	model_config = ConfigDict(frozen=True, extra="ignore")

	# Go servers marshal struct fields as-is, so accept "Name"/"Mode" too
	name: StrictStr = Field(validation_alias=AliasChoices("name", "Name"))
	mode: Mode = Field(validation_alias=AliasChoices("mode", "Mode"))

	@property
	def is_directory(self) -> bool:
		return is_directory(self.mode)

	@property
	def is_parent(self) -> bool:
		return self.name == PARENT_NAME

	@property
	def mode_string(self) -> str:
		return render_mode_string(self.mode)

	def to_wire(self) -> str:
		return self.model_dump_json()


PARENT_ENTRY = RemoteEntry(name=PARENT_NAME, mode=DIRECTORY_BIT)

_ENTRY_LIST = TypeAdapter(List[RemoteEntry])


def parse_entries(raw: str) -> tuple[RemoteEntry, ...]:
	"""Validate a JSON array of entries. Raises ProtocolError on any bad item."""
	try:
		entries = _ENTRY_LIST.validate_json(raw)
	except ValidationError as e:
		first = e.errors()[0] if e.error_count() else {}
		where = ".".join(str(p) for p in first.get("loc", ())) or "payload"
		raise ProtocolError("list", f"{where}: {first.get('msg', str(e))}", raw) from e
	return tuple(entries)


def entries_to_wire(entries: Iterable[RemoteEntry]) -> str:
	return _ENTRY_LIST.dump_json(list(entries)).decode("utf-8")


def with_parent(entries: Iterable[RemoteEntry]) -> tuple[RemoteEntry, ...]:
	"""The listing as displayed: the synthesized ``..`` first, server order after."""
	return (PARENT_ENTRY, *entries)
