"""
Decoder Exceptions
==================

Typed failures raised inside the decode pipeline.  The orchestrator turns
each of them into a :class:`~elfspan.core.models.Rejection` value.  Table
decoders never raise them: they clip to the buffer before reading and
record an anomaly instead.
"""

from __future__ import annotations

from typing import Optional

from elfspan.core.models import RejectionKind


class ElfDecodeError(Exception):
    """Base class for every failure the decoder can raise."""

    kind: RejectionKind = RejectionKind.OUT_OF_BOUNDS

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset


class NotElfError(ElfDecodeError):
    """Magic bytes absent or buffer shorter than the minimum header."""

    kind = RejectionKind.NOT_ELF


class UnsupportedVariantError(ElfDecodeError):
    """Class or data byte outside the two values ELF defines."""

    kind = RejectionKind.UNSUPPORTED_VARIANT


class OutOfBoundsError(ElfDecodeError):
    """A read would extend past the end of the buffer."""

    kind = RejectionKind.OUT_OF_BOUNDS

    def __init__(self, offset: int, size: int, buffer_length: int) -> None:
        super().__init__(
            f"read of {size} byte(s) at offset 0x{offset:x} exceeds "
            f"buffer length 0x{buffer_length:x}",
            offset,
        )
        self.size = size
        self.buffer_length = buffer_length
