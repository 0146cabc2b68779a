"""
Configuration for the remblob.io module.

Defines CodecSettings, a frozen dataclass carrying runtime configuration for the codec.
Defaults are sourced from remblob.core.constants (the single source of truth).

Source of truth
- remblob.core.constants.COMPRESSION, ROW_GROUP_SIZE, TEXT_ENCODING

Import DAG discipline
- Depends only on stdlib and remblob.core.

Notes
- Precedence: environment > TOML > defaults.
- Compression and row group size apply to Parquet writes in remblob.io.write.
- index_columns_first only changes the CSV header display order; written files keep
  the physical column order.
"""

from __future__ import annotations

import codecs
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from remblob.core.constants import COMPRESSION as CORE_COMPRESSION
from remblob.core.constants import COMPRESSIONS
from remblob.core.constants import ROW_GROUP_SIZE as CORE_ROW_GROUP_SIZE
from remblob.core.constants import TEXT_ENCODING

from .errors import IoConfigError

_TRUTHY = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY = frozenset({"0", "false", "f", "no", "n", "off"})


@dataclass(frozen=True)
class CodecSettings:
    """
    Runtime settings for the codec.

    Attributes:
        compression (str): Parquet compression codec ("snappy", "zstd", "gzip", "lz4",
            "brotli" or "none").
        row_group_size (int): Parquet row group size used for writes (>= 1).
        index_columns_first (bool): Move pandas index columns to the front of the CSV header.
        encoding (str): Text encoding of the CSV side.

    Examples:
        >>> from remblob.io import CodecSettings
        >>> CodecSettings(compression="zstd")  # doctest: +ELLIPSIS
        CodecSettings(...)
    """

    compression: str = CORE_COMPRESSION
    row_group_size: int = CORE_ROW_GROUP_SIZE
    index_columns_first: bool = False
    encoding: str = TEXT_ENCODING

    def __post_init__(self) -> None:
        if self.compression not in COMPRESSIONS:
            raise IoConfigError(
                f"unsupported compression {self.compression!r}; expected one of {sorted(COMPRESSIONS)}"
            )
        if self.row_group_size < 1:
            raise IoConfigError(f"row_group_size must be >= 1, got {self.row_group_size}")
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise IoConfigError(f"unknown text encoding {self.encoding!r}") from exc

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: CodecSettings, cfg: dict[str, Any] | None) -> CodecSettings:
        """Apply a loose config mapping onto CodecSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        def _bool(key: str, v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, str):
                lo = v.strip().lower()
                if lo in _TRUTHY:
                    return True
                if lo in _FALSY:
                    return False
            raise IoConfigError(f"{key} must be a boolean, got {v!r}")

        def _int(key: str, v: Any) -> int:
            if isinstance(v, bool):
                raise IoConfigError(f"{key} must be an integer, got {v!r}")
            try:
                return int(v)
            except (TypeError, ValueError) as exc:
                raise IoConfigError(f"{key} must be an integer, got {v!r}") from exc

        s = base
        if "compression" in cfg:
            s = replace(s, compression=str(cfg["compression"]).strip().lower())
        if "row_group_size" in cfg:
            s = replace(s, row_group_size=_int("row_group_size", cfg["row_group_size"]))
        if "index_columns_first" in cfg:
            s = replace(
                s, index_columns_first=_bool("index_columns_first", cfg["index_columns_first"])
            )
        if "encoding" in cfg:
            s = replace(s, encoding=str(cfg["encoding"]).strip())
        return s

    @classmethod
    def from_env(
        cls, base: CodecSettings | None = None, prefix: str = "REMBLOB_"
    ) -> CodecSettings:
        """
        Build CodecSettings from environment variables. Precedence is env > base > defaults.

        Recognized variables:
            - REMBLOB_COMPRESSION
            - REMBLOB_ROW_GROUP_SIZE
            - REMBLOB_INDEX_COLUMNS_FIRST (1/0/true/false/yes/no/on/off)
            - REMBLOB_ENCODING
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for key in ("compression", "row_group_size", "index_columns_first", "encoding"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> CodecSettings:
        """
        Build CodecSettings from a TOML file.

        Search order when `path` is None:
            1) ./remblob.toml (with either a top-level [codec] table or direct keys)
            2) ./pyproject.toml under [tool.remblob]

        Returns defaults if no file is present.

        Raises:
            IoConfigError: If a candidate file exists but is not valid TOML.
        """
        s = cls()

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "remblob.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            try:
                with p.open("rb") as fh:
                    data = tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise IoConfigError(f"invalid TOML in {p}: {exc}") from exc
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("remblob") if isinstance(tool, dict) else None
            elif isinstance(data.get("codec"), dict):
                cfg = data["codec"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> CodecSettings:
        """
        Load CodecSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (remblob.toml,
                pyproject.toml).

        Returns:
            CodecSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
