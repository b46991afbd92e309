"""Per-structure ELF decoders, record layouts and lookup tables."""
