"""Tests for canonical hashing and the cleartext codec."""

import pytest

from sensorbridge.ledger.codec import WORD_SIZE, decode_cleartexts, encode_cleartexts
from sensorbridge.ledger.errors import MalformedCleartext, ProofVerificationFailed
from sensorbridge.ledger.integrity import compute_hash, compute_integrity_hash

A = b"\x01" * 32
B = b"\x02" * 32


class TestIntegrityHash:

    def test_deterministic(self):
        assert compute_integrity_hash([A, B], "L") == compute_integrity_hash([A, B], "L")

    def test_fixed_size(self):
        assert len(compute_integrity_hash([A, B], "L")) == 64

    def test_order_sensitive(self):
        assert compute_integrity_hash([A, B], "L") != compute_integrity_hash([B, A], "L")

    def test_ledger_bound(self):
        assert compute_integrity_hash([A, B], "L1") != compute_integrity_hash([A, B], "L2")

    def test_handle_change_detected(self):
        assert compute_integrity_hash([A, B], "L") != compute_integrity_hash([A, b"\x03" * 32], "L")


class TestCanonicalHash:

    def test_key_order_independent(self):
        assert compute_hash({"a": 1, "b": 2}) == compute_hash({"b": 2, "a": 1})

    def test_value_sensitive(self):
        assert compute_hash({"total": 1, "max": 2}) != compute_hash({"total": 1, "max": 3})
        assert len(compute_hash({"total": 1})) == 64


class TestCodec:

    def test_layout(self):
        blob = encode_cleartexts([8, 20])
        assert len(blob) == 2 * WORD_SIZE
        assert blob[WORD_SIZE - 1] == 8
        assert blob[-1] == 20
        assert decode_cleartexts(blob) == (8, 20)

    def test_large_values(self):
        assert decode_cleartexts(encode_cleartexts([2**32 - 1, 0])) == (2**32 - 1, 0)

    @pytest.mark.parametrize("blob", [b"", b"\x00" * 63, b"\x00" * 96])
    def test_wrong_length_is_malformed(self, blob):
        with pytest.raises(MalformedCleartext):
            decode_cleartexts(blob)

    def test_malformed_is_a_decryption_failure(self):
        assert issubclass(MalformedCleartext, ProofVerificationFailed)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            encode_cleartexts([-1, 0])
