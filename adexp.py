#!/usr/bin/env python3
"""adexp.

Usage:
  adexp decode [<file> ...]
                  [--tokens=<file> --format=<option>]
                  [--workers=<n> --compat --decode --verbose]
  adexp check  [<file> ...]
                  [--tokens=<file> --workers=<n> --compat --verbose]
  adexp tokens [--tokens=<file>]
  adexp (-h | --help)
  adexp --version

Options:
  -h --help                 Show this screen.
  --version                 Show version.
  --tokens=<file>           Token definition file. Defaults to the built-in default.tokens.
  --format=<option>         Print decoded messages in different formats [default: compact].
                                Options: compact, json, tree.
                                json: structured JSON output.
                                tree: hierarchical tree structure.
  --workers=<n>             Decode fields on a pool of n threads, 0 decodes sequentially [default: 0].
  --compat                  Lenient mode: empty record lists give one empty record and
                                unparseable flight levels decode as 0.
  --decode                  Apply the display formatters declared in the token file.
  --verbose                 Enable debug logging.

Reads standard input when no <file> is given or <file> is '-'.
"""

__version__ = "0.1.0"

import json
import logging
import sys
from typing import Any

from docopt import docopt
from treelib import Tree

from adexp_ast import Message, TokenRegistry, FieldKind
from analyzer import DecodeError
from config import DecoderConfig, ConfigValidationError
from parser import ParseError
import formatters


def read_input(name: str) -> str:
    if name == "-":
        return sys.stdin.read()
    with open(name) as f:
        return f.read()


def get_display_formats(registry: TokenRegistry) -> dict[tuple[str, str], str]:
    """Map (message attribute, record attribute) to a display formatter name."""
    displays = {}
    for token in registry.by_kind(FieldKind.RECORDS):
        for sub in token.subfields:
            if sub.display:
                displays[(token.attribute, sub.attribute)] = sub.display
    return displays


def message_view(message: Message, displays: dict = None, decode: bool = False) -> dict[str, Any]:
    """Plain dictionary of a message, with display formatters applied if decode=True."""
    view = message.to_dict()
    if not decode or not displays:
        return view

    for (attribute, record_attribute), fmt_name in displays.items():
        for record in view.get(attribute, ()):
            formatted = formatters.format_value(fmt_name, record[record_attribute])
            if formatted is not None:
                record[record_attribute] = formatted
    return view


def _is_empty(value) -> bool:
    return value == "" or value == () or value == []


def get_message_string_compact(view: dict[str, Any]) -> str:
    """One line per non-empty attribute, one line per record."""
    lines = []
    for attribute, value in view.items():
        if _is_empty(value):
            continue
        if isinstance(value, (list, tuple)) and value and isinstance(value[0], dict):
            for i, record in enumerate(value):
                fields = " ".join(f"{k}={v}" for k, v in record.items())
                lines.append(f"{attribute}[{i}]: {fields}")
        elif isinstance(value, (list, tuple)):
            lines.append(f"{attribute}: {', '.join(value)}")
        else:
            lines.append(f"{attribute}: {value}")
    return "\n".join(lines)


def get_message_string_json(view: dict[str, Any]) -> str:
    return json.dumps(view, indent=2)


def get_message_string_tree(view: dict[str, Any], title: str = "message") -> str:
    """Hierarchical tree of the non-empty attributes of a message."""
    tree = Tree()
    counter = [0]

    def add(tag: str, parent: str | None) -> str:
        counter[0] += 1
        node_id = f"n{counter[0]}"
        # data keeps insertion order for display
        tree.create_node(tag, node_id, parent=parent, data=counter[0])
        return node_id

    root = add(title, None)
    for attribute, value in view.items():
        if _is_empty(value):
            continue
        if isinstance(value, (list, tuple)):
            node = add(f"{attribute} ({len(value)})", root)
            for i, item in enumerate(value):
                if isinstance(item, dict):
                    record_node = add(f"[{i}]", node)
                    for k, v in item.items():
                        add(f"{k}: {v}", record_node)
                else:
                    add(str(item), node)
        else:
            add(f"{attribute}: {value}", root)

    return tree.show(key=lambda node: node.data, stdout=False)


def get_message_string(view: dict[str, Any], fmt: str = "compact", title: str = "message") -> str:
    if fmt == "compact":
        return get_message_string_compact(view)
    elif fmt == "json":
        return get_message_string_json(view)
    elif fmt == "tree":
        return get_message_string_tree(view, title)
    raise ValueError(f"Unknown format '{fmt}'")


def get_registry_tree(registry: TokenRegistry) -> str:
    tree = Tree()
    tree.create_node(f"tokens (version {registry.version}, {len(registry)} defined)", "root", data=0)
    order = 0
    for kind in FieldKind:
        order += 1
        tree.create_node(kind.value, kind.value, parent="root", data=order)
        for token in registry.by_kind(kind):
            order += 1
            tag = f"{token.name} -> {token.attribute}"
            if token.record_type:
                tag += f" : {token.record_type}"
            tree.create_node(tag, token.name, parent=kind.value, data=order)
            for sub in token.subfields:
                order += 1
                sub_tag = f"{sub.key} -> {sub.attribute}"
                if sub.converter:
                    sub_tag += f" : {sub.converter}"
                tree.create_node(sub_tag, f"{token.name}.{sub.key}", parent=token.name, data=order)
    return tree.show(key=lambda node: node.data, stdout=False)


def check_summary(message: Message) -> str:
    counts = " ".join(
        f"{name}={len(getattr(message, name))}"
        for name in ("eetfir", "speed", "estdata", "geo", "route_points")
    )
    upper = "yes" if message.is_upper_level() else "no"
    return f"title={message.title} {counts} upper_level={upper}"


def cli_main(argv: list[str] | None = None) -> int:
    args = docopt(__doc__, argv=argv, version=f"adexp {__version__}")

    ret = 0

    try:
        config = DecoderConfig.from_args(args)
        decoder = config.create_decoder()
    except (ConfigValidationError, ParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args["tokens"]:
        print(get_registry_tree(decoder.registry))
        return ret

    fmt = args["--format"]
    if fmt not in ("compact", "json", "tree"):
        print(f"Error: Unknown format '{fmt}'", file=sys.stderr)
        return 1

    displays = get_display_formats(decoder.registry)
    names = args["<file>"] or ["-"]

    for name in names:
        try:
            text = read_input(name)
        except FileNotFoundError:
            print(f"Error: File not found: {name}", file=sys.stderr)
            ret = 1
            continue

        try:
            message = decoder.decode(text)
        except DecodeError as e:
            if args["check"]:
                print(f"FAIL {name}: {e}")
            else:
                print(f"Error: {name}: {e}", file=sys.stderr)
            ret = 1
            continue

        if args["check"]:
            print(f"OK {name} {check_summary(message)}")
        else:
            view = message_view(message, displays, decode=args["--decode"])
            print(get_message_string(view, fmt, title=name))

    sys.stdout.flush()
    return ret


if __name__ == "__main__":
    sys.exit(cli_main())
