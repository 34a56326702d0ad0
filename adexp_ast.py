"""
AST Node definitions for the ADEXP decoder

These dataclasses represent the token registry loaded from a .tokens file,
the intermediate values produced per logical line, and the decoded message.
"""

from dataclasses import dataclass, field, fields, asdict
from types import MappingProxyType
from typing import Any, Mapping
from enum import Enum


UPPER_LEVEL = 350  # FL350, hundreds of feet


class FieldKind(Enum):
    SCALAR = "scalar"
    REPEATING = "repeating"
    RECORDS = "records"


class MessageType(Enum):
    ADEXP = 0
    ICAO = 1  # AFTN/ICAO format, reserved


# === Registry ===

@dataclass(frozen=True)
class SubfieldDef:
    """A subfield of a record token: PTID -> point_id : fl [display: ...]"""
    key: str
    attribute: str
    converter: str | None = None  # e.g., "fl"
    display: str | None = None    # formatter name


@dataclass(frozen=True)
class TokenDef:
    """A token definition: scalar TITLE -> title"""
    name: str
    kind: FieldKind
    attribute: str
    record_type: str | None = None  # Only for FieldKind.RECORDS
    subfields: tuple[SubfieldDef, ...] = ()

    def get_subfield(self, key: str) -> SubfieldDef | None:
        for s in self.subfields:
            if s.key == key:
                return s
        return None


@dataclass(frozen=True)
class TokenRegistry:
    """Fixed mapping from token name to its definition."""
    version: str
    tokens: Mapping[str, TokenDef] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mapping so a loaded registry can't be altered at runtime
        object.__setattr__(self, "tokens", MappingProxyType(dict(self.tokens)))

    def get(self, name: str) -> TokenDef | None:
        return self.tokens.get(name)

    def kind_of(self, name: str) -> FieldKind | None:
        """Field kind of a token, or None when the token is not managed."""
        token = self.tokens.get(name)
        return token.kind if token else None

    def is_managed(self, name: str) -> bool:
        return name in self.tokens

    def by_kind(self, kind: FieldKind) -> list[TokenDef]:
        return [t for t in self.tokens.values() if t.kind == kind]

    def __len__(self) -> int:
        return len(self.tokens)


# === Records ===

@dataclass(frozen=True)
class EstimatedData:
    """One ESTDATA entry"""
    point_id: str = ""
    eto: str = ""  # Estimated time over, raw YYMMDDHHMMSS
    flight_level: int = 0


@dataclass(frozen=True)
class GeoPoint:
    """One GEO entry. Coordinates are kept as raw encoded strings."""
    geo_id: str = ""
    latitude: str = ""
    longitude: str = ""


@dataclass(frozen=True)
class RoutePoint:
    """One RTEPTS entry"""
    point_id: str = ""
    flight_level: int = 0
    eto: str = ""


# Record type names usable in a .tokens file
RECORD_TYPES = {
    "estimated_data": EstimatedData,
    "geo_point": GeoPoint,
    "route_point": RoutePoint,
}


# === Decoded fields ===

@dataclass(frozen=True)
class ScalarField:
    """Decoded value of a scalar or repeating token"""
    token: str
    value: str


@dataclass(frozen=True)
class RecordListField:
    """Decoded value of a record token: one mapping per record, in source order"""
    token: str
    records: tuple[Mapping[str, Any], ...] = ()


# Union of the values produced for one logical line
DecodedField = ScalarField | RecordListField


# === Message ===

@dataclass(frozen=True)
class Message:
    """A decoded ADEXP message"""
    type: MessageType = MessageType.ADEXP
    title: str = ""
    adep: str = ""          # Departure aerodrome
    ades: str = ""          # Destination aerodrome
    alternate: str = ""     # Alternate aerodrome
    arcid: str = ""         # Aircraft id
    arc_type: str = ""      # Aircraft type
    ceqpt: str = ""         # Equipment code
    message_text: str = ""
    comment: str = ""
    eetfir: tuple[str, ...] = ()  # FIR crossings
    speed: tuple[str, ...] = ()
    estdata: tuple[EstimatedData, ...] = ()
    geo: tuple[GeoPoint, ...] = ()
    route_points: tuple[RoutePoint, ...] = ()

    def is_upper_level(self) -> bool:
        """Check whether any route point is above FL350."""
        return any(r.flight_level > UPPER_LEVEL for r in self.route_points)

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["type"] = self.type.name
        return result


def message_attributes() -> dict[str, Any]:
    """Map Message attribute names to their dataclass fields."""
    return {f.name: f for f in fields(Message) if f.name != "type"}


def record_attributes(record_type: str) -> set[str]:
    return {f.name for f in fields(RECORD_TYPES[record_type])}
