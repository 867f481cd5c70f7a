"""
Fuzz tests for the JSON scanner and call argument decoding.

Feeds random and mutated inputs to the parsers. The scanner must return a
value or None and never raise; record decoding must raise CallArgsError or
succeed, never anything else.
"""

import random

import pytest

from evm_engine.core.call_args import FunctionCallArgs, ViewCallArgs
from evm_engine.core.engine_exceptions import CallArgsError, JsonError
from evm_engine.core.json_parser import parse_json, parse_plain
from evm_engine.core.json_value import JsonKind, JsonValue

SEED_DOCUMENTS = [
    b'{"receiver_id": "bob.near", "amount": "1000", "memo": null}',
    b'[1, -2, 3.5e10, true, false, null, "\\u00e9\\n", {"a": []}]',
    b'{"nested": {"deeper": {"deepest": [[[[]]]]}}}',
    b'"\\ud83d\\ude00"',
    b"-0.0e-0",
]

STRUCTURAL = b'{}[],:"\\-+.eE0123456789tfnrlsu \t\n'


def _mutate(rng, data):
    data = bytearray(data)
    for _ in range(rng.randint(1, 4)):
        op = rng.choice(("flip", "insert", "delete", "truncate"))
        if op == "flip" and data:
            data[rng.randrange(len(data))] = rng.randrange(256)
        elif op == "insert":
            data.insert(rng.randint(0, len(data)), rng.choice(STRUCTURAL))
        elif op == "delete" and data:
            del data[rng.randrange(len(data))]
        elif op == "truncate" and data:
            del data[rng.randrange(len(data)):]
    return bytes(data)


class TestScannerFuzz:
    @pytest.mark.parametrize("seed", range(5))
    def test_random_bytes_never_raise(self, seed):
        rng = random.Random(seed)
        for _ in range(300):
            raw = bytes(rng.randrange(256) for _ in range(rng.randint(0, 64)))
            result = parse_json(raw)
            assert result is None or isinstance(result, JsonValue)

    @pytest.mark.parametrize("seed", range(5))
    def test_structural_noise_never_raises(self, seed):
        rng = random.Random(1000 + seed)
        for _ in range(300):
            raw = bytes(rng.choice(STRUCTURAL) for _ in range(rng.randint(0, 48)))
            parse_json(raw)
            parse_plain(raw)

    @pytest.mark.parametrize("seed", range(5))
    def test_mutated_documents_never_raise(self, seed):
        rng = random.Random(2000 + seed)
        for _ in range(400):
            raw = _mutate(rng, rng.choice(SEED_DOCUMENTS))
            result = parse_json(raw)
            assert result is None or isinstance(result, JsonValue)

    def test_extraction_on_fuzzed_values_only_raises_json_error(self):
        rng = random.Random(3000)
        for _ in range(300):
            value = parse_json(_mutate(rng, SEED_DOCUMENTS[0]))
            if value is None:
                continue
            for accessor in ("string", "u64", "u128", "bool", "u8", "array"):
                try:
                    getattr(value, accessor)(rng.choice(("receiver_id", "amount", "memo", "x")))
                except JsonError:
                    pass
            assert value.kind in JsonKind


class TestCallArgsFuzz:
    @pytest.mark.parametrize("record", [FunctionCallArgs, ViewCallArgs])
    def test_random_bytes_decode_or_reject(self, record):
        rng = random.Random(record.__name__)
        for _ in range(300):
            raw = bytes(rng.randrange(256) for _ in range(rng.randint(0, 120)))
            try:
                decoded = record.from_bytes(raw)
            except CallArgsError as exc:
                assert bytes(exc) == b"ERR_ARG_PARSE"
            else:
                assert decoded.to_bytes() == raw
