"""Tests for ``ordergate.idempotency.fingerprint``."""

from __future__ import annotations

import hashlib

from ordergate.idempotency import fingerprint


class TestFingerprint:
    def test_sha256_of_raw_bytes(self):
        body = '{"customerId":"c"}'
        assert fingerprint(body) == hashlib.sha256(body.encode()).hexdigest()

    def test_str_and_bytes_agree(self):
        assert fingerprint('{"a":1}') == fingerprint(b'{"a":1}')

    def test_identical_bytes_identical_key(self):
        assert fingerprint(b'{"a": 1}') == fingerprint(b'{"a": 1}')

    def test_raw_mode_sees_key_order(self):
        assert fingerprint('{"a":1,"b":2}') != fingerprint('{"b":2,"a":1}')

    def test_raw_mode_sees_whitespace(self):
        assert fingerprint('{"a":1}') != fingerprint('{"a": 1}')

    def test_canonical_ignores_order_and_whitespace(self):
        assert fingerprint('{"a":1,"b":2}', canonical=True) == fingerprint(
            '{ "b": 2,  "a": 1 }', canonical=True
        )

    def test_canonical_non_json_falls_back_to_raw(self):
        assert fingerprint("plain text", canonical=True) == fingerprint("plain text")

    def test_namespace_prefix(self):
        key = fingerprint("x", namespace="create-order")
        assert key.startswith("create-order#")
        assert key.removeprefix("create-order#") == fingerprint("x")
