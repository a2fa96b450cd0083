"""Log line protocol."""

from .codec import (
    encode,
    encode_payload,
    decode,
    decode_line,
    split_head,
    light_code_labels,
    sanitize_text,
    LIGHT_CODE_OPCODES,
    LEGACY_IGNORED_OPCODES,
    REPLAY_IGNORED_OPCODES,
)

__all__ = [
    "encode",
    "encode_payload",
    "decode",
    "decode_line",
    "split_head",
    "light_code_labels",
    "sanitize_text",
    "LIGHT_CODE_OPCODES",
    "LEGACY_IGNORED_OPCODES",
    "REPLAY_IGNORED_OPCODES",
]
