"""Bytecode fingerprinting for deployment-registry library."""

import re
from typing import Union

from web3 import Web3

from .exceptions import InvalidBytecodeError

# Unlinked library placeholders emitted by solc
_LINK_PLACEHOLDER = re.compile(r"__\$([0-9a-fA-F]{34})\$__")
_LEGACY_LINK_PLACEHOLDER = re.compile(r"__\w{36}__")
_HEX = re.compile(r"[0-9a-fA-F]*")


def _normalize_bytecode(bytecode: Union[str, bytes]) -> str:
    """
    Convert bytecode to lowercase hex without 0x prefix.

    Library link placeholders are replaced by deterministic hex so that
    unlinked bytecode can be hashed.

    Raises:
        InvalidBytecodeError: If bytecode is empty, odd-length or not hex
    """
    if isinstance(bytecode, (bytes, bytearray)):
        hex_code = bytes(bytecode).hex()
    elif isinstance(bytecode, str):
        hex_code = bytecode[2:] if bytecode[:2] in ("0x", "0X") else bytecode
        hex_code = _LINK_PLACEHOLDER.sub(lambda m: f"000{m.group(1)}000", hex_code)
        hex_code = _LEGACY_LINK_PLACEHOLDER.sub(
            lambda m: Web3.to_hex(Web3.keccak(text=m.group(0)))[2:42],
            hex_code,
        )
    else:
        raise InvalidBytecodeError(
            f"Bytecode must be hex text or bytes, got {type(bytecode).__name__}"
        )

    if not hex_code:
        raise InvalidBytecodeError("Bytecode is empty (abstract contract or interface?)")
    if len(hex_code) % 2 != 0:
        raise InvalidBytecodeError(f"Bytecode has odd hex length {len(hex_code)}")
    if not _HEX.fullmatch(hex_code):
        raise InvalidBytecodeError("Bytecode contains non-hex characters")

    return hex_code.lower()


def strip_bytecode_metadata(bytecode: Union[str, bytes]) -> str:
    """
    Remove the trailing CBOR metadata block appended by solc.

    The last two bytes of compiled bytecode encode the length of the metadata
    block preceding them. The block (and the length bytes) are dropped only
    when that length fits inside the bytecode; otherwise it is returned as-is.

    Args:
        bytecode: Hex string (with or without 0x) or raw bytes

    Returns:
        0x-prefixed lowercase hex without metadata

    Raises:
        InvalidBytecodeError: If bytecode is malformed
    """
    hex_code = _normalize_bytecode(bytecode)

    if len(hex_code) <= 4:
        return "0x" + hex_code

    metadata_length = int(hex_code[-4:], 16) * 2 + 4
    if metadata_length >= len(hex_code):
        return "0x" + hex_code

    return "0x" + hex_code[:-metadata_length]


def fingerprint_bytecode(bytecode: Union[str, bytes]) -> str:
    """
    Derive a stable version identifier for contract logic.

    Two builds differing only in embedded metadata (source hashes, compiler
    build info) share a fingerprint; any change to instructions changes it.

    Args:
        bytecode: Hex string (with or without 0x) or raw bytes

    Returns:
        0x-prefixed keccak-256 hex digest of the metadata-stripped bytecode

    Raises:
        InvalidBytecodeError: If bytecode is malformed
    """
    stripped = strip_bytecode_metadata(bytecode)
    return Web3.to_hex(Web3.keccak(hexstr=stripped))
