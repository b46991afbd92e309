"""Shared fixtures: a decoder and a fully populated sample image per variant."""

from __future__ import annotations

import pytest

from elfspan.core.engine import ElfDecoder
from elfspan.core.models import ElfModel

from elf_builder import build_sample

VARIANTS = [(32, "little"), (32, "big"), (64, "little"), (64, "big")]
VARIANT_IDS = ["elf32-le", "elf32-be", "elf64-le", "elf64-be"]


@pytest.fixture
def decoder() -> ElfDecoder:
    return ElfDecoder()


@pytest.fixture(params=VARIANTS, ids=VARIANT_IDS)
def variant(request: pytest.FixtureRequest) -> tuple[int, str]:
    return request.param


@pytest.fixture
def sample_bytes(variant: tuple[int, str]) -> bytes:
    return build_sample(*variant)


@pytest.fixture
def sample_model(decoder: ElfDecoder, sample_bytes: bytes) -> ElfModel:
    return decoder.decode_or_raise(sample_bytes)
