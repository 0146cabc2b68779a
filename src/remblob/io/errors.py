"""
Custom exceptions for the remblob.io module.

Purpose
- Provide IO-layer specific error types for configuration and file output.
- Keep remblob.core.errors as the source of truth for codec errors (malformed input,
  conversion failures, session misuse).

Source of truth and boundaries
- remblob.core.errors.CodecError and subclasses are raised by readers, writers and the codec.
- remblob.io raises Io* errors for settings and filesystem concerns:
  - IoConfigError: invalid or unsupported configuration.
  - IoWriteError: atomic write path failed (tmp write/fsync/rename).

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations


class IoError(Exception):
    """
    Base class for IO-related errors in remblob.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from codec errors.
    """


class IoConfigError(IoError):
    """
    Raised when codec configuration is invalid or unsupported.

    Examples:
        - Unknown compression codec
        - Row group size < 1
    """


class IoWriteError(IoError):
    """
    Raised when an output file could not be written atomically.

    Notes:
        The write path is tmp file → fsync → os.replace(tmp, final). Failures at any step
        surface as IoWriteError after best-effort cleanup of the tmp file.
    """
