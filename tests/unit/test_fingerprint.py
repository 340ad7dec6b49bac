"""Unit tests for bytecode fingerprinting."""

import pytest
from web3 import Web3

from conftest import CODE, CODE_CHANGED, with_metadata
from deployment_registry.exceptions import InvalidBytecodeError
from deployment_registry.versions import fingerprint_bytecode, strip_bytecode_metadata


class TestStripBytecodeMetadata:
    """Test the strip_bytecode_metadata function."""

    def test_removes_metadata_block(self):
        """Test that the trailing CBOR block and its length are removed."""
        assert strip_bytecode_metadata(with_metadata(CODE)) == "0x" + CODE

    def test_accepts_missing_prefix(self):
        """Test that bytecode without 0x is accepted."""
        assert strip_bytecode_metadata(with_metadata(CODE)[2:]) == "0x" + CODE

    def test_accepts_bytes(self):
        """Test that raw bytes are accepted."""
        raw = bytes.fromhex(with_metadata(CODE)[2:])
        assert strip_bytecode_metadata(raw) == "0x" + CODE

    def test_keeps_bytecode_when_length_does_not_fit(self):
        """Test that bytecode is unchanged when the length suffix exceeds it."""
        # 0xffff bytes of metadata cannot fit in 4 bytes of code
        assert strip_bytecode_metadata("0x6080ffff") == "0x6080ffff"

    def test_short_bytecode_unchanged(self):
        """Test that bytecode of two bytes or less is returned as-is."""
        assert strip_bytecode_metadata("0x6080") == "0x6080"

    def test_uppercase_hex_normalized(self):
        """Test that hex is lowercased."""
        assert strip_bytecode_metadata(with_metadata(CODE).upper().replace("0X", "0x")) == "0x" + CODE


class TestFingerprintBytecode:
    """Test the fingerprint_bytecode function."""

    def test_deterministic(self):
        """Test that the same bytecode yields the same id."""
        assert fingerprint_bytecode(with_metadata(CODE)) == fingerprint_bytecode(with_metadata(CODE))

    def test_ignores_metadata(self):
        """Test that builds differing only in metadata share a fingerprint."""
        first = fingerprint_bytecode(with_metadata(CODE, ipfs_byte="12"))
        second = fingerprint_bytecode(with_metadata(CODE, ipfs_byte="34"))

        assert first == second

    def test_instruction_change_changes_fingerprint(self):
        """Test that changing executable code changes the fingerprint."""
        assert fingerprint_bytecode(with_metadata(CODE)) != fingerprint_bytecode(
            with_metadata(CODE_CHANGED)
        )

    def test_is_keccak_of_stripped_code(self):
        """Test that the id is keccak-256 of the stripped bytecode."""
        expected = Web3.to_hex(Web3.keccak(hexstr="0x" + CODE))

        assert fingerprint_bytecode(with_metadata(CODE)) == expected
        assert expected.startswith("0x")
        assert len(expected) == 66

    def test_link_placeholders_are_hashable(self):
        """Test that unlinked library placeholders do not make bytecode invalid."""
        placeholder = "__$" + "0" * 34 + "$__"
        unlinked = "0x" + CODE + "73" + placeholder + CODE

        fingerprint = fingerprint_bytecode(unlinked)

        assert fingerprint.startswith("0x")

    @pytest.mark.parametrize(
        "bad",
        ["", "0x", "0x123", "0xzz", "not bytecode"],
    )
    def test_rejects_malformed_bytecode(self, bad):
        """Test that malformed bytecode raises InvalidBytecodeError."""
        with pytest.raises(InvalidBytecodeError):
            fingerprint_bytecode(bad)

    def test_rejects_non_text_input(self):
        """Test that unsupported types raise InvalidBytecodeError."""
        with pytest.raises(InvalidBytecodeError):
            fingerprint_bytecode(12345)
