from __future__ import annotations

import argparse
import hashlib
import logging
import os
import shlex
import subprocess
import sys
import tempfile
from pathlib import Path

import polars as pl

from remblob import __version__
from remblob.core.errors import CodecError, EmptyInputError
from remblob.core.inference import infer_schema
from remblob.core.serde import dumps_document, loads_document
from remblob.io.codec import ParquetCodec
from remblob.io.config import CodecSettings
from remblob.io.errors import IoError
from remblob.io.fs import atomic_writer, open_read
from remblob.io.shovel import MultiShovel, base_name
from remblob.io.text import read_text

SIDECAR_SUFFIX = ".schema.json"
DEFAULT_EDITOR = "vi"


def _print_head(path: Path, n: int = 5) -> None:
    """Print the first n rows of a Parquet file via Polars.

    Args:
        path: Path to parquet file.
        n: Number of rows to print.
    """
    df = pl.read_parquet(path)
    print(df.head(n))


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=str, default=None, help="Path to a remblob TOML file.")
    p.add_argument("--verbose", action="store_true", help="Log debug messages to stderr.")


def _setup(args: argparse.Namespace) -> CodecSettings:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return CodecSettings.load(args.config)


def _file_digest(path: Path) -> str:
    with path.open("rb") as fh:
        return hashlib.sha256(fh.read()).hexdigest()


def _cmd_to_csv(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="to-csv", description="Convert a Parquet file to CSV.")
    p.add_argument("src", type=str, help="Parquet file to read.")
    p.add_argument("dst", type=str, help="CSV file to write.")
    p.add_argument(
        "--schema-out",
        type=str,
        default="",
        help=f"Where to write the captured schema (default: DST{SIDECAR_SUFFIX}).",
    )
    p.add_argument("--no-schema", action="store_true", help="Do not write a schema sidecar.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    codec = ParquetCodec(settings)
    with atomic_writer(args.dst) as dst:
        codec.copy_in(dst, open_read(args.src))
    print(f"[INFO] Wrote CSV to {args.dst}")

    if not args.no_schema and codec.schema is not None:
        sidecar = args.schema_out or args.dst + SIDECAR_SUFFIX
        with atomic_writer(sidecar) as fh:
            fh.write(dumps_document(codec.schema, codec.metadata).encode("utf-8"))
        print(f"[INFO] Wrote schema to {sidecar}")
    return 0


def _cmd_from_csv(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="from-csv", description="Convert a CSV file to Parquet.")
    p.add_argument("src", type=str, help="CSV file to read.")
    p.add_argument("dst", type=str, help="Parquet file to write.")
    p.add_argument(
        "--schema",
        type=str,
        default="",
        help=f"Schema sidecar to write with (default: SRC{SIDECAR_SUFFIX} if present).",
    )
    p.add_argument("--infer", action="store_true", help="Ignore any sidecar and infer types.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    sidecar = args.schema or args.src + SIDECAR_SUFFIX
    if not args.infer and (args.schema or os.path.exists(sidecar)):
        schema, metadata = loads_document(Path(sidecar).read_text(encoding="utf-8"))
        codec = ParquetCodec.from_captured(schema, metadata, settings)
        print(f"[INFO] Using schema from {sidecar}")
    else:
        codec = ParquetCodec(settings)
        print("[INFO] No schema given; inferring column types")

    with atomic_writer(args.dst) as dst:
        codec.copy_out(dst, open_read(args.src))
    if codec.skipped:
        rows = ", ".join(str(m.row) for m in codec.skipped)
        print(f"[WARN] Dropped rows with a mismatched cell count: {rows}")
    print(f"[INFO] Wrote Parquet to {args.dst}")
    return 0


def _cmd_infer(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="infer", description="Print the schema inferred from a CSV.")
    p.add_argument("src", type=str, help="CSV file to read.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    text = read_text(Path(args.src).read_bytes().decode(settings.encoding, "surrogateescape"))
    if not text.rows:
        raise EmptyInputError("CSV text has no data rows to infer a schema from")
    print(dumps_document(infer_schema(text.header, text.rows), ()))
    return 0


def _cmd_show(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="show", description="Show a Parquet file head.")
    p.add_argument("src", type=str, help="Parquet file to read.")
    p.add_argument("--n", type=int, default=5, help="Rows to display.")
    _add_common(p)
    args = p.parse_args(argv)
    _setup(args)

    _print_head(Path(args.src), n=args.n)
    return 0


def _cmd_edit(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="edit",
        description="Open a file in $VISUAL/$EDITOR (Parquet as CSV, .gz decompressed) and save it back.",
    )
    p.add_argument("src", type=str, help="File to edit.")
    p.add_argument("dst", type=str, nargs="?", default="", help="Where to save (default: SRC).")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    dst_path = args.dst or args.src
    shovel = MultiShovel.for_names(args.src, dst_path, settings)
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or DEFAULT_EDITOR

    with tempfile.TemporaryDirectory(prefix="remblob-") as tmp_dir:
        local = Path(tmp_dir) / base_name(args.src)
        with local.open("wb") as tmp:
            shovel.copy_in(tmp, open_read(args.src))

        before = _file_digest(local)
        subprocess.run([*shlex.split(editor), str(local)], check=True)
        if _file_digest(local) == before:
            print("[INFO] No change to input, not writing to the destination")
            return 0

        with atomic_writer(dst_path) as dst:
            shovel.copy_out(dst, local.open("rb"))
    print(f"[INFO] Saved {dst_path}")
    return 0


def _cmd_view(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="view",
        description="Open a file in $VISUAL/$EDITOR (Parquet as CSV, .gz decompressed); changes are discarded.",
    )
    p.add_argument("src", type=str, help="File to view.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    shovel = MultiShovel.for_names(args.src, args.src, settings)
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or DEFAULT_EDITOR

    with tempfile.TemporaryDirectory(prefix="remblob-") as tmp_dir:
        local = Path(tmp_dir) / base_name(args.src)
        with local.open("wb") as tmp:
            shovel.copy_in(tmp, open_read(args.src))

        before = _file_digest(local)
        subprocess.run([*shlex.split(editor), str(local)], check=True)
        if _file_digest(local) != before:
            print("[WARN] Running in view mode. Changes were discarded!")
    return 0


def _cmd_version(argv: list[str]) -> int:
    argparse.ArgumentParser(prog="version", description="Print the remblob version.").parse_args(argv)
    print(f"remblob {__version__}")
    return 0


_COMMANDS = {
    "to-csv": _cmd_to_csv,
    "from-csv": _cmd_from_csv,
    "infer": _cmd_infer,
    "show": _cmd_show,
    "edit": _cmd_edit,
    "view": _cmd_view,
    "version": _cmd_version,
}


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="remblob", description="Edit Parquet files as CSV text.")
    sub = p.add_subparsers(dest="cmd", required=True)
    for name in _COMMANDS:
        sub.add_parser(name)
    return p


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        raise SystemExit(2)
    try:
        code = handler(rest)
    except (CodecError, IoError, OSError, subprocess.CalledProcessError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
