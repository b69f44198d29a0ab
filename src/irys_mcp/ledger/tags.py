"""
Tag shaping for the two wire contracts.

Writes attach single-valued tags, so multiple values are joined with a
comma. A backslash or comma inside a value is escaped first, which keeps
the join reversible with split_tag_value().

Queries send tags natively multi-valued: the indexer matches any of the
listed values.
"""

from collections.abc import Iterable

from irys_mcp.schema import Tag, TagScalar

TAG_VALUE_DELIMITER = ","
ESCAPE_CHAR = "\\"

ROOT_TX_TAG = "Root-TX"
CONTENT_TYPE_TAG = "Content-Type"


def _scalar_to_str(value: TagScalar) -> str:
    # JSON spelling for booleans, matching what agents send
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def escape_tag_value(value: str) -> str:
    """Escape the delimiter and escape character inside one value."""
    return value.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2).replace(
        TAG_VALUE_DELIMITER, ESCAPE_CHAR + TAG_VALUE_DELIMITER
    )


def join_tag_values(values: Iterable[TagScalar]) -> str:
    """Join values into one delimited string."""
    return TAG_VALUE_DELIMITER.join(escape_tag_value(_scalar_to_str(v)) for v in values)


def split_tag_value(joined: str) -> list[str]:
    """Reverse join_tag_values()."""
    values: list[str] = []
    current: list[str] = []
    chars = iter(joined)
    for char in chars:
        if char == ESCAPE_CHAR:
            current.append(next(chars, ""))
        elif char == TAG_VALUE_DELIMITER:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    values.append("".join(current))
    return values


def flatten_tags(tags: Iterable[Tag] | None) -> list[dict[str, str]]:
    """
    Convert tags to the single-valued shape attached to writes.

    Example:
        flatten_tags([Tag.of("Category", "a", "b")])
        -> [{"name": "Category", "value": "a,b"}]
    """
    if not tags:
        return []
    return [{"name": tag.name, "value": join_tag_values(tag.values)} for tag in tags]


def query_tag_filters(tags: Iterable[Tag] | None) -> list[dict[str, object]] | None:
    """Convert tags to the indexer's multi-valued filter shape."""
    if tags is None:
        return None
    return [
        {"name": tag.name, "values": [_scalar_to_str(v) for v in tag.values]}
        for tag in tags
    ]


def has_tag(tags: Iterable[dict[str, str]], name: str) -> bool:
    """Case-insensitive check for a flattened tag name."""
    lowered = name.lower()
    return any(tag["name"].lower() == lowered for tag in tags)
