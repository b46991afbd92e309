"""
elfspan Configuration Management
=================================

Centralized configuration for the elfspan decoder and its command-line
shell using Python dataclasses and TOML-based persistence.

Configuration is kept apart from code: every tunable lives in one of the
dataclasses below and may be overridden from an ``elfspan.toml`` file.

References:
    - PEP 681 -- Data Class Transforms (2022).
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "elfspan.toml"


# ========================== Section Configs ================================


@dataclass(frozen=False, slots=True)
class DecoderConfig:
    """Configuration for the ELF decode pipeline.

    Controls policy decisions the decoder makes on well-formed but
    unusual input, and the upper bounds that keep a decode proportional
    to the size of the buffer.
    """

    # Unused symbol slots (empty name, zero value) stay indexed but are
    # hidden from SymbolTable.symbols when this is set.
    exclude_unused_symbols: bool = True
    max_table_entries: int = 1_000_000
    string_encoding: str = "utf-8"
    resolve_dynamic_strings: bool = True
    max_file_size: int = 268_435_456  # 256 MiB, checked by ElfDecoder.decode_path


@dataclass(frozen=False, slots=True)
class OutputConfig:
    """Configuration for console and report rendering."""

    max_strings_shown: int = 200
    max_symbols_shown: int = 500
    show_unused_symbols: bool = False
    report_indent: int = 2


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity and log destinations."""

    log_level: str = "WARNING"
    log_file: str = ""
    log_json: bool = False
    debug: bool = False
    version: str = "1.0.0"


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class ElfspanConfig:
    """Master configuration aggregating all settings.

    Usage:
        >>> config = ElfspanConfig.load()                  # from default path
        >>> config = ElfspanConfig.load("custom.toml")     # from custom path
        >>> config.decoder.max_table_entries
        1000000
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> ElfspanConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``elfspan.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`ElfspanConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            decoder=cls._build_section(DecoderConfig, raw.get("decoder", {})),
            output=cls._build_section(OutputConfig, raw.get("output", {})),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are ignored so that
        forward-compatible config files do not break older code.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)
