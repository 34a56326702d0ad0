"""
ADEXP Token Definition Parser

Uses Lark to parse .tokens files and transform them into a TokenRegistry.
"""

from pathlib import Path
from lark import Lark, Transformer
from lark.exceptions import UnexpectedToken, UnexpectedCharacters, UnexpectedInput
from adexp_ast import (
    TokenRegistry, TokenDef, SubfieldDef, FieldKind,
    RECORD_TYPES, message_attributes, record_attributes,
)
import formatters


# Load grammar from file
GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"
DEFAULT_TOKENS_PATH = Path(__file__).parent / "default.tokens"

# Conversions applicable to a subfield value
CONVERTERS = {"fl"}


def get_parser() -> Lark:
    """Create and return the Lark parser."""
    with open(GRAMMAR_PATH) as f:
        grammar = f.read()
    return Lark(grammar, start="start", parser="lalr")


class TokensTransformer(Transformer):
    """Transform Lark parse tree into registry nodes."""

    # === Terminals ===

    def STRING(self, token):
        # Remove quotes
        return str(token)[1:-1]

    def TOKEN(self, token):
        return str(token)

    def IDENT(self, token):
        return str(token)

    # === Header ===

    def version_decl(self, items):
        return ("version", items[0])

    # === Tokens ===

    def scalar_def(self, items):
        name, attribute = items
        return TokenDef(name=name, kind=FieldKind.SCALAR, attribute=attribute)

    def repeating_def(self, items):
        name, attribute = items
        return TokenDef(name=name, kind=FieldKind.REPEATING, attribute=attribute)

    def converter(self, items):
        return ("converter", items[0])

    def attributes(self, items):
        return ("display", items[0])

    def subfield_def(self, items):
        key, attribute = items[0], items[1]
        options = dict(items[2:])
        return SubfieldDef(
            key=key,
            attribute=attribute,
            converter=options.get("converter"),
            display=options.get("display"),
        )

    def records_def(self, items):
        name, attribute, record_type = items[:3]
        return TokenDef(
            name=name,
            kind=FieldKind.RECORDS,
            attribute=attribute,
            record_type=record_type,
            subfields=tuple(items[3:]),
        )

    # === Start ===

    def start(self, items):
        version = "1.0"
        token_defs = []
        for item in items:
            if isinstance(item, tuple) and item[0] == "version":
                version = item[1]
            else:
                token_defs.append(item)
        return version, token_defs


class ParseError(Exception):
    """Exception raised for parsing errors with line/column info."""
    def __init__(self, message: str, line: int = None, column: int = None, file_path: str = None):
        self.line = line
        self.column = column
        self.file_path = file_path
        super().__init__(message)

    def __str__(self):
        location = ""
        if self.file_path:
            location = f"{self.file_path}:"
        if self.line is not None:
            location += f"{self.line}:"
            if self.column is not None:
                location += f"{self.column}:"
        if location:
            return f"{location} {self.args[0]}"
        return self.args[0]


# Expected Message attribute type per field kind
_KIND_ANNOTATIONS = {
    FieldKind.SCALAR: str,
    FieldKind.REPEATING: tuple[str, ...],
}


def _validate_token(token: TokenDef, file_path: str | None) -> None:
    """Check a token definition against the Message and record dataclasses.

    Raises:
        ParseError: If the definition refers to unknown attributes, record types,
            converters or formatters
    """
    attributes = message_attributes()
    if token.attribute not in attributes:
        raise ParseError(f"Token '{token.name}': unknown message attribute '{token.attribute}'", file_path=file_path)

    if token.kind in _KIND_ANNOTATIONS:
        expected = _KIND_ANNOTATIONS[token.kind]
        if attributes[token.attribute].type != expected:
            raise ParseError(
                f"Token '{token.name}': attribute '{token.attribute}' can't hold a {token.kind.value} value",
                file_path=file_path,
            )
        return

    if token.record_type not in RECORD_TYPES:
        raise ParseError(f"Token '{token.name}': unknown record type '{token.record_type}'", file_path=file_path)
    if attributes[token.attribute].type != tuple[RECORD_TYPES[token.record_type], ...]:
        raise ParseError(
            f"Token '{token.name}': attribute '{token.attribute}' can't hold {token.record_type} records",
            file_path=file_path,
        )

    record_fields = record_attributes(token.record_type)
    seen_keys = set()
    for sub in token.subfields:
        if sub.key in seen_keys:
            raise ParseError(f"Token '{token.name}': duplicate subfield '{sub.key}'", file_path=file_path)
        seen_keys.add(sub.key)
        if sub.attribute not in record_fields:
            raise ParseError(
                f"Token '{token.name}': unknown {token.record_type} attribute '{sub.attribute}'",
                file_path=file_path,
            )
        if sub.converter is not None and sub.converter not in CONVERTERS:
            raise ParseError(f"Token '{token.name}': unknown converter '{sub.converter}'", file_path=file_path)
        available = formatters.list_formatters()
        if sub.display is not None and sub.display not in available:
            raise ParseError(
                f"Token '{token.name}': unknown display formatter '{sub.display}'. "
                f"Available: {', '.join(available)}",
                file_path=file_path,
            )


def _build_registry(version: str, token_defs: list[TokenDef], file_path: str | None) -> TokenRegistry:
    tokens = {}
    for token in token_defs:
        if token.name in tokens:
            raise ParseError(f"Duplicate token '{token.name}'", file_path=file_path)
        _validate_token(token, file_path)
        tokens[token.name] = token
    return TokenRegistry(version=version, tokens=tokens)


_parser = None
_default_registry = None


def _parse_content(content: str, file_path: str | None = None) -> TokenRegistry:
    global _parser
    if _parser is None:
        _parser = get_parser()

    try:
        tree = _parser.parse(content)
    except UnexpectedToken as e:
        msg = f"Unexpected token '{e.token}'"
        if e.expected:
            expected = ", ".join(sorted(e.expected)[:5])
            msg += f". Expected one of: {expected}"
        raise ParseError(msg, line=e.line, column=e.column, file_path=file_path) from None
    except UnexpectedCharacters as e:
        msg = f"Unexpected character '{e.char}'"
        if e.allowed:
            allowed = ", ".join(sorted(e.allowed)[:5])
            msg += f". Expected one of: {allowed}"
        raise ParseError(msg, line=e.line, column=e.column, file_path=file_path) from None
    except UnexpectedInput as e:
        raise ParseError(str(e), file_path=file_path) from None

    version, token_defs = TokensTransformer().transform(tree)
    return _build_registry(version, token_defs, file_path)


def parse(file_path: str | Path) -> TokenRegistry:
    """Parse a .tokens file and return the registry it declares.

    Args:
        file_path: Path to the .tokens file (str or Path)

    Returns:
        Frozen TokenRegistry

    Raises:
        ParseError: If the file is missing, malformed, or declares invalid tokens
    """
    try:
        with open(file_path) as f:
            content = f.read()
    except FileNotFoundError:
        raise ParseError(f"Tokens file not found: {file_path}")

    return _parse_content(content, str(file_path))


def parse_string(content: str) -> TokenRegistry:
    """Parse a .tokens string and return the registry."""
    return _parse_content(content)


def default_registry() -> TokenRegistry:
    """Registry of the built-in ADEXP tokens, parsed once per process."""
    global _default_registry
    if _default_registry is None:
        _default_registry = parse(DEFAULT_TOKENS_PATH)
    return _default_registry


if __name__ == "__main__":
    import sys
    if len(sys.argv) < 2:
        print("Usage: python parser.py <file.tokens>")
        sys.exit(1)

    result = parse(sys.argv[1])
    print(result)
