"""
ADEXP Analyzer

Decodes ADEXP messages against a token registry.

Pipeline: raw text -> preprocess() -> logical lines -> decode_line() per line
-> aggregate() -> Message.
"""

import logging
import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Any, Iterable, Iterator

from adexp_ast import (
    TokenRegistry, TokenDef, FieldKind, MessageType, Message,
    ScalarField, RecordListField, DecodedField,
    RECORD_TYPES,
)
from parser import default_registry

logger = logging.getLogger(__name__)

DASH = "-"
BEGIN = "-BEGIN "
END = "-END"
COMMENT = "//"

# Flight level: one ASCII letter followed by ASCII digits, e.g. F390
_FLIGHT_LEVEL_PATTERN = re.compile(r"[A-Za-z]([0-9]+)")

# Flight level used by compatibility mode when the subfield can't be parsed
COMPAT_FLIGHT_LEVEL = 0


class DecodeError(Exception):
    """Base class for ADEXP decoding failures."""


class EmptyInputError(DecodeError):
    """Raised when the raw input has zero length."""

    def __init__(self):
        super().__init__("input is empty")


class MalformedFlightLevelError(DecodeError):
    """Raised when a flight level subfield is not a letter followed by digits."""

    def __init__(self, value: str, token: str | None = None):
        self.value = value
        self.token = token
        message = f"flight level {value!r} cannot be parsed"
        if token:
            message += f" in {token}"
        super().__init__(message)


UnknownFlightLevelFormatError = MalformedFlightLevelError


def parse_line(line: str) -> tuple[str, str]:
    """Split a line into its token name and raw value.

    Example: '-COMMENT TEST' returns ('COMMENT', 'TEST'), '-TITLE' returns ('TITLE', '').
    """
    if not line:
        return "", ""

    i = line.find(" ")
    if i == -1:
        return line[1:], ""

    return line[1:i], line[i + 1:]


def iter_subfields(value: str) -> Iterator[str]:
    """Yield every subfield of a record token value in order.

    A subfield is a dash, any one character, then a run of non-dash characters.
    """
    cursor = value.find(DASH)
    while cursor != -1 and cursor + 1 < len(value):
        end = value.find(DASH, cursor + 2)
        if end == -1:
            end = len(value)
        yield value[cursor:end]
        cursor = value.find(DASH, end)


def parse_complex_value(value: str) -> list[dict[str, str]]:
    """Group the subfields of a record token value into records.

    A key already present in the current record starts a new record.
    An empty value yields no record.
    """
    if not value.strip(" "):
        return []

    records = []
    current: dict[str, str] = {}

    for sub in iter_subfields(value):
        key, raw = parse_line(sub)
        if key in current:
            records.append(current)
            current = {}
        current[key] = raw.strip(" ")

    records.append(current)
    return records


def extract_flight_level(value: str, token: str | None = None) -> int:
    """Parse a flight level such as 'F390' into hundreds of feet (390)."""
    match = _FLIGHT_LEVEL_PATTERN.fullmatch(value)
    if not match:
        raise MalformedFlightLevelError(value, token)
    return int(match.group(1))


class Decoder:
    """Decodes ADEXP messages using a token registry."""

    def __init__(self, registry: TokenRegistry | None = None, workers: int = 0, compat: bool = False):
        self.registry = registry if registry is not None else default_registry()
        self.workers = workers  # > 1 decodes logical lines on a thread pool
        self.compat = compat    # Lenient empty-value and flight level handling

    # === Preprocessing ===

    def preprocess(self, text: str) -> list[str]:
        """Reassemble physical lines into one logical line per field.

        Raises:
            EmptyInputError: If text has zero length
        """
        if len(text) == 0:
            raise EmptyInputError()

        result = []
        parts: list[str] = []   # Pieces of the field being assembled

        for line in text.split("\n"):
            line = line.rstrip("\r")

            if line.startswith(END) or line.startswith(COMMENT):
                continue

            if line.startswith(BEGIN):
                if parts:
                    result.append(" ".join(parts))
                # -BEGIN RTEPTS opens a regular -RTEPTS field
                parts = [DASH + line.strip(" ")[len(BEGIN):].strip(" ")]
            elif line.startswith(DASH):
                if parts:
                    result.append(" ".join(parts))
                parts = [line.strip(" ")]
            else:
                content = line.strip(" ")
                if not content:
                    continue
                if not parts:
                    logger.warning(f"Continuation line without an open field: {line!r}")
                    continue
                parts.append(content)

        if parts:
            result.append(" ".join(parts))

        return result

    # === Field decoding ===

    def decode_line(self, line: str) -> DecodedField | None:
        """Decode one logical line.

        Returns None for comments, blank lines, empty token names and tokens
        the registry does not manage.

        Raises:
            MalformedFlightLevelError: If a record flight level can't be parsed
        """
        if not line or line.startswith(COMMENT):
            return None

        token, value = parse_line(line)
        if not token:
            logger.warning(f"Token name is empty on line {line!r}")
            return None

        token_def = self.registry.get(token)
        if token_def is None:
            logger.warning(f"Token {token} is not managed by the decoder")
            return None

        if token_def.kind == FieldKind.RECORDS:
            return RecordListField(token=token, records=tuple(self._decode_records(token_def, value)))

        return ScalarField(token=token, value=value)

    def _decode_records(self, token_def: TokenDef, value: str) -> list[MappingProxyType]:
        records = parse_complex_value(value)
        if not records:
            logger.warning(f"Empty value for token {token_def.name}")
            if self.compat:
                records = [{}]

        converters = [s for s in token_def.subfields if s.converter == "fl"]
        decoded = []
        for record in records:
            for sub in converters:
                record[sub.key] = self._flight_level(record.get(sub.key, ""), token_def.name)
            decoded.append(MappingProxyType(record))
        return decoded

    def _flight_level(self, value: str, token: str) -> int:
        try:
            return extract_flight_level(value, token)
        except MalformedFlightLevelError:
            if not self.compat:
                raise
            logger.warning(f"Flight level {value!r} in {token} cannot be parsed, using {COMPAT_FLIGHT_LEVEL}")
            return COMPAT_FLIGHT_LEVEL

    def _decode_lines(self, lines: list[str]) -> list[DecodedField | None]:
        """Decode logical lines, keeping their original order."""
        if self.workers <= 1 or len(lines) < 2:
            return [self.decode_line(line) for line in lines]

        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="adexp-decode")
        try:
            # One future per position; results are read back by position, not completion
            futures = [executor.submit(self.decode_line, line) for line in lines]
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    # === Aggregation ===

    def aggregate(self, decoded: Iterable[DecodedField | None]) -> Message:
        """Fold decoded fields, in original order, into a Message.

        Scalars overwrite earlier values; repeating and record fields append.
        """
        scalars: dict[str, str] = {}
        sequences: dict[str, list[Any]] = defaultdict(list)

        for field in decoded:
            if field is None:
                continue
            if not isinstance(field, (ScalarField, RecordListField)):
                raise TypeError(f"Unexpected decoded field {field!r}")

            token_def = self.registry.get(field.token)
            if token_def is None:
                logger.warning(f"Token {field.token} is not managed by the decoder")
                continue

            if isinstance(field, RecordListField):
                record_class = RECORD_TYPES[token_def.record_type]
                for record in field.records:
                    sequences[token_def.attribute].append(self._build_record(token_def, record_class, record))
            elif token_def.kind == FieldKind.REPEATING:
                sequences[token_def.attribute].append(field.value)
            else:
                scalars[token_def.attribute] = field.value

        return Message(
            type=MessageType.ADEXP,
            **scalars,
            **{attribute: tuple(values) for attribute, values in sequences.items()},
        )

    def _build_record(self, token_def: TokenDef, record_class: type, record) -> Any:
        kwargs = {}
        for sub in token_def.subfields:
            if sub.key in record:
                kwargs[sub.attribute] = record[sub.key]
        return record_class(**kwargs)

    def decode(self, text: str | bytes) -> Message:
        """Decode a raw ADEXP message.

        Raises:
            EmptyInputError: If text is empty
            MalformedFlightLevelError: If a flight level can't be parsed
        """
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")

        logger.debug(f"parsing: {text!r}")

        lines = self.preprocess(text)
        message = self.aggregate(self._decode_lines(lines))

        logger.debug(f"returning message: {message}")
        return message


def decode(text: str | bytes, registry: TokenRegistry | None = None, workers: int = 0, compat: bool = False) -> Message:
    """Decode a raw ADEXP message with a one-off Decoder."""
    return Decoder(registry, workers=workers, compat=compat).decode(text)


def is_upper_level(message: Message) -> bool:
    """True if any route point is strictly above FL350."""
    return message.is_upper_level()
