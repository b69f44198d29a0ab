"""
Signed data items for the upload endpoint.

Upload nodes accept ANS-104 data items: a binary envelope holding the
signature, the signer's public key, an optional target and anchor, the
Avro-encoded tag list, and the payload.

Layout:
    signature type     2 bytes, little-endian
    signature          65 bytes (Ethereum)
    owner              65 bytes (uncompressed secp256k1 public key)
    target             1 presence byte [+ 32 bytes]
    anchor             1 presence byte [+ 32 bytes]
    tag count          8 bytes, little-endian
    tag bytes length   8 bytes, little-endian
    tags               Avro array of {name: bytes, value: bytes}
    data               remaining bytes

The signature covers the SHA-384 deep hash of the fields, and the item id
is base64url(sha256(signature)).
"""

import base64
import hashlib
import secrets
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

SIGNATURE_TYPE_ETHEREUM = 3
SIGNATURE_LENGTH = 65
OWNER_LENGTH = 65
ANCHOR_LENGTH = 32
TARGET_LENGTH = 32


class DataItemSigner(Protocol):
    """Anything that can sign a deep hash for a data item."""

    signature_type: int

    @property
    def owner(self) -> bytes: ...

    def sign(self, message: bytes) -> bytes: ...


# =============================================================================
# Encoding helpers
# =============================================================================


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def deep_hash(data: bytes | Sequence) -> bytes:
    """SHA-384 deep hash over a blob or a nested list of blobs."""
    if isinstance(data, (bytes, bytearray)):
        tag = b"blob" + str(len(data)).encode()
        return hashlib.sha384(hashlib.sha384(tag).digest() + hashlib.sha384(data).digest()).digest()

    acc = hashlib.sha384(b"list" + str(len(data)).encode()).digest()
    for chunk in data:
        acc = hashlib.sha384(acc + deep_hash(chunk)).digest()
    return acc


def _zigzag_varint(n: int) -> bytes:
    n = (n << 1) ^ (n >> 63)
    out = bytearray()
    while n & ~0x7F:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def _read_zigzag_varint(buf: bytes, pos: int) -> tuple[int, int]:
    shift = 0
    n = 0
    while True:
        b = buf[pos]
        pos += 1
        n |= (b & 0x7F) << shift
        shift += 7
        if not b & 0x80:
            break
    return (n >> 1) ^ -(n & 1), pos


def encode_tags(tags: Sequence[dict[str, str]]) -> bytes:
    """Avro-encode a list of {name, value} tags. No tags encode to b""."""
    if not tags:
        return b""
    out = bytearray(_zigzag_varint(len(tags)))
    for tag in tags:
        for key in ("name", "value"):
            raw = tag[key].encode("utf-8")
            out += _zigzag_varint(len(raw))
            out += raw
    out += _zigzag_varint(0)
    return bytes(out)


def decode_tags(raw: bytes) -> list[dict[str, str]]:
    """Reverse encode_tags()."""
    tags: list[dict[str, str]] = []
    if not raw:
        return tags
    pos = 0
    while True:
        count, pos = _read_zigzag_varint(raw, pos)
        if count == 0:
            break
        if count < 0:
            # Avro block with byte size prefix
            _, pos = _read_zigzag_varint(raw, pos)
            count = -count
        for _ in range(count):
            tag = {}
            for key in ("name", "value"):
                length, pos = _read_zigzag_varint(raw, pos)
                tag[key] = raw[pos:pos + length].decode("utf-8")
                pos += length
            tags.append(tag)
    return tags


# =============================================================================
# Data item
# =============================================================================


@dataclass(frozen=True)
class DataItem:
    """
    A signed ANS-104 data item.

    Attributes:
        signature: Raw signature bytes
        owner: Signer public key
        tags: Flattened {name, value} tags
        data: Payload bytes
        anchor: Optional 32-byte anchor
        target: Optional 32-byte target
        signature_type: Signature scheme identifier
    """

    signature: bytes
    owner: bytes
    tags: list[dict[str, str]] = field(default_factory=list)
    data: bytes = b""
    anchor: bytes = b""
    target: bytes = b""
    signature_type: int = SIGNATURE_TYPE_ETHEREUM

    @property
    def id(self) -> str:
        return b64url_encode(hashlib.sha256(self.signature).digest())

    def to_bytes(self) -> bytes:
        """Serialize to the binary layout posted to upload nodes."""
        raw_tags = encode_tags(self.tags)
        out = bytearray()
        out += self.signature_type.to_bytes(2, "little")
        out += self.signature
        out += self.owner
        out += (b"\x01" + self.target) if self.target else b"\x00"
        out += (b"\x01" + self.anchor) if self.anchor else b"\x00"
        out += len(self.tags).to_bytes(8, "little")
        out += len(raw_tags).to_bytes(8, "little")
        out += raw_tags
        out += self.data
        return bytes(out)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "DataItem":
        """
        Parse a serialized data item.

        Raises:
            ValueError: If the buffer is truncated or uses another signature type
        """
        min_length = 2 + SIGNATURE_LENGTH + OWNER_LENGTH + 2 + 16
        if len(raw) < min_length:
            msg = f"Data item too short: {len(raw)} bytes"
            raise ValueError(msg)

        signature_type = int.from_bytes(raw[0:2], "little")
        if signature_type != SIGNATURE_TYPE_ETHEREUM:
            msg = f"Unsupported signature type: {signature_type}"
            raise ValueError(msg)

        pos = 2
        signature = raw[pos:pos + SIGNATURE_LENGTH]
        pos += SIGNATURE_LENGTH
        owner = raw[pos:pos + OWNER_LENGTH]
        pos += OWNER_LENGTH

        target = b""
        if raw[pos] == 1:
            target = raw[pos + 1:pos + 1 + TARGET_LENGTH]
            pos += TARGET_LENGTH
        pos += 1

        anchor = b""
        if raw[pos] == 1:
            anchor = raw[pos + 1:pos + 1 + ANCHOR_LENGTH]
            pos += ANCHOR_LENGTH
        pos += 1

        tag_count = int.from_bytes(raw[pos:pos + 8], "little")
        pos += 8
        tags_length = int.from_bytes(raw[pos:pos + 8], "little")
        pos += 8
        tags = decode_tags(raw[pos:pos + tags_length])
        pos += tags_length
        if len(tags) != tag_count:
            msg = f"Tag count mismatch: header says {tag_count}, decoded {len(tags)}"
            raise ValueError(msg)

        return cls(
            signature=signature,
            owner=owner,
            tags=tags,
            data=raw[pos:],
            anchor=anchor,
            target=target,
            signature_type=signature_type,
        )


def signature_data(
    signature_type: int,
    owner: bytes,
    tags: Sequence[dict[str, str]],
    data: bytes,
    anchor: bytes = b"",
    target: bytes = b"",
) -> bytes:
    """The deep hash a signer signs for these fields."""
    return deep_hash([
        b"dataitem",
        b"1",
        str(signature_type).encode(),
        owner,
        target,
        anchor,
        encode_tags(tags),
        data,
    ])


def new_anchor() -> bytes:
    """A random 32-byte anchor, so identical uploads get distinct ids."""
    return base64.b64encode(secrets.token_bytes(24))


def create_data_item(
    data: bytes,
    signer: DataItemSigner,
    tags: Sequence[dict[str, str]] = (),
    anchor: bytes | None = None,
) -> DataItem:
    """
    Build and sign a data item.

    Args:
        data: Payload bytes
        signer: Signs the deep hash
        tags: Flattened {name, value} tags
        anchor: 32-byte anchor; a random one when None

    Returns:
        The signed DataItem
    """
    anchor = new_anchor() if anchor is None else anchor
    if anchor and len(anchor) != ANCHOR_LENGTH:
        msg = f"Anchor must be {ANCHOR_LENGTH} bytes"
        raise ValueError(msg)

    tag_list = list(tags)
    message = signature_data(signer.signature_type, signer.owner, tag_list, data, anchor)
    return DataItem(
        signature=signer.sign(message),
        owner=signer.owner,
        tags=tag_list,
        data=data,
        anchor=anchor,
        signature_type=signer.signature_type,
    )
