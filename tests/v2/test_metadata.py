"""
Tests for block hash metadata extraction.
"""

import pytest
from aiohttp import web

from ledger_client.runtime.errors import CallError, ErrorCode
from ledger_client.runtime.hashes import BlockHash
from ledger_client.v2.client import extract_metadata


class TestExtractMetadata:
    """Tests for extract_metadata."""

    def test_valid_header(self):
        assert extract_metadata({"blockhash": "ab" * 32}) == BlockHash.from_hex("ab" * 32)

    def test_lookup_is_case_insensitive(self):
        assert extract_metadata({"BlockHash": "AB" * 32}) == BlockHash.from_hex("ab" * 32)
        headers = web.Response(headers={"BLOCKHASH": "01" * 32}).headers
        assert extract_metadata(headers) == BlockHash.from_hex("01" * 32)

    def test_missing_header(self):
        with pytest.raises(CallError) as exc_info:
            extract_metadata({})
        assert exc_info.value.message == "Response does not include the expected metadata."
        assert exc_info.value.code == ErrorCode.MISSING_METADATA

    @pytest.mark.parametrize("value", ["", "ab" * 31, "ab" * 33])
    def test_wrong_length(self, value):
        with pytest.raises(CallError) as exc_info:
            extract_metadata({"blockhash": value})
        assert exc_info.value.message == "Response does not include the expected metadata."

    def test_invalid_hex(self):
        """64 characters that are not hex fail rather than producing a zero hash."""
        with pytest.raises(CallError) as exc_info:
            extract_metadata({"blockhash": "zz" * 32})
        assert exc_info.value.message == "Response does not correctly encode the block hash."
