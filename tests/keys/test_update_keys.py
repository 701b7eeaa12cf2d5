"""
Tests for update key files.
"""

import json

import pytest

from ledger_client.crypto import Ed25519KeyPair
from ledger_client.keys import UpdateKeyPair, load_update_key, load_update_keys
from ledger_client.runtime.errors import ErrorCode, KeyFileError


def write_key(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestLoadUpdateKey:
    """Tests for loading key files."""

    def test_load_valid_file(self, tmp_path):
        original = UpdateKeyPair(2, Ed25519KeyPair.from_seed("key-file"))
        path = write_key(tmp_path, "key.json", original.to_dict())

        key = load_update_key(path)

        assert key.index == 2
        assert key.public_key_bytes == original.public_key_bytes
        message = b"digest"
        assert original.key_pair.verify(message, key.sign(message))

    def test_load_several(self, tmp_path):
        paths = [
            write_key(tmp_path, f"key-{i}.json", UpdateKeyPair(i, Ed25519KeyPair.from_seed(f"k{i}")).to_dict())
            for i in range(3)
        ]
        assert [k.index for k in load_update_keys(paths)] == [0, 1, 2]

    def test_missing_file(self, tmp_path):
        path = tmp_path / "absent.json"
        with pytest.raises(KeyFileError) as exc_info:
            load_update_key(path)
        assert exc_info.value.path == str(path)
        assert exc_info.value.code == ErrorCode.KEY_FILE_ERROR

    def test_not_json(self, tmp_path):
        path = write_key(tmp_path, "key.json", "not json at all")
        with pytest.raises(KeyFileError):
            load_update_key(path)

    def test_missing_sign_key(self, tmp_path):
        key = Ed25519KeyPair.from_seed("x")
        path = write_key(tmp_path, "key.json", {"index": 0, "verifyKey": key.public_key.to_hex()})
        with pytest.raises(KeyFileError):
            load_update_key(path)

    def test_mismatched_keys(self, tmp_path):
        signing = Ed25519KeyPair.from_seed("signing")
        other = Ed25519KeyPair.from_seed("other")
        path = write_key(tmp_path, "key.json", {
            "index": 0, "signKey": signing.private_key.to_hex(), "verifyKey": other.public_key.to_hex(),
        })
        with pytest.raises(KeyFileError):
            load_update_key(path)

    def test_negative_index(self, tmp_path):
        data = UpdateKeyPair(0, Ed25519KeyPair.from_seed("x")).to_dict()
        data["index"] = -1
        path = write_key(tmp_path, "key.json", data)
        with pytest.raises(KeyFileError):
            load_update_key(path)

    def test_first_bad_file_fails_batch(self, tmp_path):
        good = write_key(tmp_path, "good.json", UpdateKeyPair(0, Ed25519KeyPair.from_seed("g")).to_dict())
        bad = tmp_path / "bad.json"
        with pytest.raises(KeyFileError) as exc_info:
            load_update_keys([good, bad])
        assert exc_info.value.path == str(bad)
