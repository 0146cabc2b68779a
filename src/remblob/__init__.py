"""
remblob — edit Parquet files as CSV text.

- remblob.core: schema model, value conversion, type inference, sidecar documents.
- remblob.io: Parquet/CSV readers and writers, the ParquetCodec session, byte copiers.
- remblob.cli: the ``remblob`` command.
"""

__version__ = "0.1.0"
