"""
Fixed-layout call argument records.

Entry points receive their arguments as packed bytes. Fixed-width fields are
stored raw; variable-length byte strings are prefixed with their length as a
u32 little-endian. Each record has exactly one encoding, and decoding
rejects input that is short or has trailing bytes.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Dict, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    model_validator,
)

from evm_engine.core.constants import (
    ADDRESS_LENGTH,
    LENGTH_PREFIX_BYTES,
    U32_MAX,
    WORD_LENGTH,
)
from evm_engine.core.engine_exceptions import CallArgsError

RawAddress = Annotated[bytes, Field(min_length=ADDRESS_LENGTH, max_length=ADDRESS_LENGTH)]
RawU256 = Annotated[bytes, Field(min_length=WORD_LENGTH, max_length=WORD_LENGTH)]
RawH256 = RawU256
RawInput = Annotated[bytes, Field(max_length=U32_MAX)]

# (field name, fixed width) pairs; a width of None marks a length-prefixed field
Layout = Tuple[Tuple[str, Optional[int]], ...]


class _Reader:
    def __init__(self, data: bytes, record: str) -> None:
        self.data = bytes(data)
        self.offset = 0
        self.record = record

    def _error(self, reason: str) -> CallArgsError:
        return CallArgsError(
            f"{self.record}: {reason}",
            details={"record": self.record, "offset": self.offset, "length": len(self.data)},
        )

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise self._error(f"expected {size} bytes at offset {self.offset}")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def take_vec(self) -> bytes:
        size = int.from_bytes(self.take(LENGTH_PREFIX_BYTES), "little")
        return self.take(size)

    def finish(self) -> None:
        if self.offset != len(self.data):
            raise self._error(f"{len(self.data) - self.offset} trailing bytes")


class CallArgs(BaseModel):
    """Base for packed argument records; subclasses declare ``layout``."""

    model_config = ConfigDict(strict=True, frozen=True)

    layout: ClassVar[Layout] = ()

    @model_validator(mode="wrap")
    @classmethod
    def reject_as_call_args_error(cls, data: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(data)
        except ValidationError as exc:
            raise CallArgsError(
                f"{cls.__name__}: invalid fields",
                details={
                    "record": cls.__name__,
                    "errors": [
                        {"field": ".".join(map(str, err["loc"])), "message": err["msg"]}
                        for err in exc.errors()
                    ],
                },
            ) from exc

    def __setattr__(self, name: str, value: Any) -> None:
        raise CallArgsError(
            f"{type(self).__name__} is immutable",
            details={"record": type(self).__name__, "field": name},
        )

    def to_bytes(self) -> bytes:
        parts = []
        for name, width in self.layout:
            value = getattr(self, name)
            if width is None:
                parts.append(len(value).to_bytes(LENGTH_PREFIX_BYTES, "little"))
            parts.append(value)
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "CallArgs":
        """
        Decode a record from its packed bytes.

        Raises:
            CallArgsError: If the input is truncated or has trailing bytes
        """
        reader = _Reader(data, cls.__name__)
        values: Dict[str, Any] = {}
        for name, width in cls.layout:
            values[name] = reader.take_vec() if width is None else reader.take(width)
        reader.finish()
        return cls(**values)


class FunctionCallArgs(CallArgs):
    """Parameters for the ``call`` entry point."""

    contract: RawAddress
    input: RawInput = b""

    layout: ClassVar[Layout] = (("contract", ADDRESS_LENGTH), ("input", None))


class ViewCallArgs(CallArgs):
    """Parameters for the ``view`` entry point."""

    sender: RawAddress
    address: RawAddress
    amount: RawU256
    input: RawInput = b""

    layout: ClassVar[Layout] = (
        ("sender", ADDRESS_LENGTH),
        ("address", ADDRESS_LENGTH),
        ("amount", WORD_LENGTH),
        ("input", None),
    )


class GetStorageAtArgs(CallArgs):
    """Parameters for the ``get_storage_at`` entry point."""

    address: RawAddress
    key: RawH256

    layout: ClassVar[Layout] = (("address", ADDRESS_LENGTH), ("key", WORD_LENGTH))


class BeginChainArgs(CallArgs):
    """Parameters for the ``begin_chain`` entry point."""

    chain_id: RawU256

    layout: ClassVar[Layout] = (("chain_id", WORD_LENGTH),)


class BeginBlockArgs(CallArgs):
    """Parameters for the ``begin_block`` entry point."""

    # The current block's hash (for replayer use).
    hash: RawU256
    # The current block's beneficiary address.
    coinbase: RawU256
    # Seconds since the Unix epoch.
    timestamp: RawU256
    # The genesis block is number zero.
    number: RawU256
    difficulty: RawU256
    gaslimit: RawU256

    layout: ClassVar[Layout] = (
        ("hash", WORD_LENGTH),
        ("coinbase", WORD_LENGTH),
        ("timestamp", WORD_LENGTH),
        ("number", WORD_LENGTH),
        ("difficulty", WORD_LENGTH),
        ("gaslimit", WORD_LENGTH),
    )
