"""
Byte copiers ("shovels") between a stored blob and its editable local form.

- copy_in: stored form → editable form (decompress, or Parquet → CSV); closes the source.
- copy_out: editable form → stored form (compress, or CSV → Parquet); closes the destination.

MultiShovel picks the concrete copier per direction from name-derived flags and keeps the
copier used by copy_in, so a Parquet schema captured on the way in is reused on the way out.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol

from .codec import ParquetCodec
from .config import CodecSettings

logger = logging.getLogger(__name__)

GZIP_SUFFIX = ".gz"
PARQUET_SUFFIX = ".parquet"


class Shovel(Protocol):
    def copy_in(self, dst: BinaryIO, src: BinaryIO) -> None: ...

    def copy_out(self, dst: BinaryIO, src: BinaryIO) -> None: ...


def is_compressed(name: str) -> bool:
    """True when ``name`` has a .gz extension."""
    return os.path.splitext(name)[1] == GZIP_SUFFIX


def base_name(name: str) -> str:
    """Base file name with a trailing .gz removed."""
    base = os.path.basename(name)
    if is_compressed(base):
        base = base[: -len(GZIP_SUFFIX)]
    return base


def is_parquet(name: str) -> bool:
    """True when ``name`` (uncompressed) has a .parquet extension."""
    return not is_compressed(name) and os.path.splitext(name)[1] == PARQUET_SUFFIX


class PlainShovel:
    """Copies bytes unchanged."""

    def copy_in(self, dst: BinaryIO, src: BinaryIO) -> None:
        shutil.copyfileobj(src, dst)
        src.close()

    def copy_out(self, dst: BinaryIO, src: BinaryIO) -> None:
        shutil.copyfileobj(src, dst)
        dst.close()


class GzipShovel:
    """Decompresses on copy_in, compresses on copy_out."""

    def copy_in(self, dst: BinaryIO, src: BinaryIO) -> None:
        with gzip.GzipFile(fileobj=src, mode="rb") as unzipped:
            shutil.copyfileobj(unzipped, dst)
        src.close()

    def copy_out(self, dst: BinaryIO, src: BinaryIO) -> None:
        with gzip.GzipFile(fileobj=dst, mode="wb") as zipped:
            shutil.copyfileobj(src, zipped)
        dst.close()


@dataclass
class MultiShovel:
    """
    Chooses a copier per direction.

    Attributes:
        source_compressed (bool): Source is gzip compressed.
        destination_compressed (bool): Destination is gzip compressed.
        source_parquet (bool): Source is Parquet; copy_in converts it to CSV.
        destination_parquet (bool): Destination is Parquet; copy_out converts CSV to it.
        settings (CodecSettings | None): Settings for Parquet conversion.

    Notes:
        The copier chosen by copy_in is kept. copy_out reuses it when it is a ParquetCodec
        and the destination is Parquet, so the captured schema and metadata survive.
    """

    source_compressed: bool = False
    destination_compressed: bool = False
    source_parquet: bool = False
    destination_parquet: bool = False
    settings: CodecSettings | None = None
    _instance: Shovel | None = field(default=None, init=False, repr=False)

    @classmethod
    def for_names(
        cls, source: str, destination: str, settings: CodecSettings | None = None
    ) -> MultiShovel:
        """Derive the flags from the source and destination names."""
        return cls(
            source_compressed=is_compressed(source),
            destination_compressed=is_compressed(destination),
            source_parquet=is_parquet(source),
            destination_parquet=is_parquet(destination),
            settings=settings,
        )

    def _pick(self, parquet: bool, compressed: bool) -> Shovel:
        if parquet:
            return ParquetCodec(self.settings)
        if compressed:
            return GzipShovel()
        return PlainShovel()

    def copy_in(self, dst: BinaryIO, src: BinaryIO) -> None:
        self._instance = self._pick(self.source_parquet, self.source_compressed)
        logger.debug("copy_in via %s", type(self._instance).__name__)
        self._instance.copy_in(dst, src)

    def copy_out(self, dst: BinaryIO, src: BinaryIO) -> None:
        shovel = self._instance
        if not (self.destination_parquet and isinstance(shovel, ParquetCodec)):
            shovel = self._pick(self.destination_parquet, self.destination_compressed)
        logger.debug("copy_out via %s", type(shovel).__name__)
        shovel.copy_out(dst, src)
