#!/usr/bin/env python3
"""
Chunked 2D Array Codec.

Stores a (dim0, dim1) float32 array as independently compressed chunks of
(chunk0, chunk1) values. Chunks are numbered row-major over the chunk grid;
edge chunks are smaller when the dimensions are not multiples of the chunk
shape.

Layout:
- Header: magic "OM", version, compression type, dim0, dim1, chunk0, chunk1,
  scale factor (little endian)
- Offset table: n_chunks + 1 uint64 end offsets, relative to the payload
- Payload: compressed chunks back to back

Compression types:
- QUANTIZED_DELTA: lossy. Values are multiplied by the scale factor, rounded
  and clipped to int16 (NaN is stored as -32768), then delta-filtered and
  Zstd-compressed. The round-trip error is at most 0.5 / scalefactor.
- FLOAT_ZSTD: lossless float32 with Zstd. The scale factor is ignored.
"""

import enum
import math
import struct
import logging
from pathlib import Path
from typing import Union

import fsspec
import numpy as np
from numcodecs import Delta, Zstd

logger = logging.getLogger(__name__)

MAGIC = b"OM"
VERSION = 1
HEADER = struct.Struct("<2sBBQQQQf")
NAN_SENTINEL = np.iinfo(np.int16).min
INT16_LIMIT = np.iinfo(np.int16).max


class OmFileError(ValueError):
    """Raised when a buffer is not a valid chunked array file."""


class CompressionType(enum.IntEnum):
    QUANTIZED_DELTA = 0
    FLOAT_ZSTD = 1


class _ChunkCodec:
    """Filter + compressor pipeline for a single chunk."""

    def __init__(self, compression_type: CompressionType, scalefactor: float):
        self.compression_type = CompressionType(compression_type)
        self.scalefactor = scalefactor
        self.compressor = Zstd(level=1)
        if self.compression_type == CompressionType.QUANTIZED_DELTA:
            self.filters = [Delta(dtype="<i2")]
            self.dtype = np.dtype("<i2")
        else:
            self.filters = []
            self.dtype = np.dtype("<f4")

    def quantize(self, values: np.ndarray) -> np.ndarray:
        """Convert float values to the stored representation."""
        if self.compression_type != CompressionType.QUANTIZED_DELTA:
            return values.astype(self.dtype)
        with np.errstate(invalid="ignore"):
            scaled = np.clip(np.round(values * self.scalefactor), -INT16_LIMIT, INT16_LIMIT)
        scaled[np.isnan(values)] = NAN_SENTINEL
        return scaled.astype(self.dtype)

    def dequantize(self, stored: np.ndarray) -> np.ndarray:
        if self.compression_type != CompressionType.QUANTIZED_DELTA:
            return stored.astype(np.float32)
        values = stored.astype(np.float32) / np.float32(self.scalefactor)
        values[stored == NAN_SENTINEL] = np.nan
        return values

    def encode(self, stored: np.ndarray) -> bytes:
        buf = np.ascontiguousarray(stored).ravel()
        for codec in self.filters:
            buf = codec.encode(buf)
        return bytes(self.compressor.encode(buf))

    def decode(self, payload, count: int, index: int = 0) -> np.ndarray:
        try:
            buf = self.compressor.decode(payload)
            for codec in reversed(self.filters):
                buf = codec.decode(buf)
            stored = np.frombuffer(buf, dtype=self.dtype)
        except (RuntimeError, ValueError) as e:
            raise OmFileError(f"Chunk {index} is corrupt: {e}") from e
        if stored.size != count:
            raise OmFileError(f"Chunk {index} holds {stored.size} values, expected {count}")
        return stored


def _chunk_grid(dim0: int, dim1: int, chunk0: int, chunk1: int):
    """Yield (row slice, column slice) per chunk in row-major order."""
    for i0 in range(math.ceil(dim0 / chunk0)):
        rows = slice(i0 * chunk0, min((i0 + 1) * chunk0, dim0))
        for i1 in range(math.ceil(dim1 / chunk1)):
            yield rows, slice(i1 * chunk1, min((i1 + 1) * chunk1, dim1))


class OmFileWriter:
    """Encodes a 2D float array into the chunked format.

    Parameters
    ----------
    dim0, dim1 : int
        Array shape (rows, columns).
    chunk0, chunk1 : int
        Chunk shape. Larger chunks compress better, smaller chunks allow
        cheaper partial reads.
    """

    def __init__(self, dim0: int, dim1: int, chunk0: int, chunk1: int):
        for name, value in (("dim0", dim0), ("dim1", dim1), ("chunk0", chunk0), ("chunk1", chunk1)):
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        self.dim0 = dim0
        self.dim1 = dim1
        self.chunk0 = min(chunk0, dim0)
        self.chunk1 = min(chunk1, dim1)

    def write_in_memory(
        self,
        compression_type: CompressionType,
        scalefactor: float,
        data,
    ) -> bytes:
        """Encode ``data`` (dim0 * dim1 values, row-major) to bytes."""
        if scalefactor <= 0:
            raise ValueError(f"scalefactor must be positive, got {scalefactor}")
        values = np.asarray(data, dtype=np.float32)
        if values.size != self.dim0 * self.dim1:
            raise ValueError(
                f"Data has {values.size} values, expected {self.dim0} x {self.dim1} = {self.dim0 * self.dim1}"
            )

        codec = _ChunkCodec(compression_type, scalefactor)
        stored = codec.quantize(values.reshape(self.dim0, self.dim1))

        payloads = [
            codec.encode(stored[rows, cols])
            for rows, cols in _chunk_grid(self.dim0, self.dim1, self.chunk0, self.chunk1)
        ]
        offsets = np.zeros(len(payloads) + 1, dtype="<u8")
        np.cumsum([len(p) for p in payloads], out=offsets[1:])

        header = HEADER.pack(
            MAGIC, VERSION, int(codec.compression_type),
            self.dim0, self.dim1, self.chunk0, self.chunk1, scalefactor,
        )
        return b"".join([header, offsets.tobytes(), *payloads])

    def write(
        self,
        file: Union[str, Path],
        compression_type: CompressionType,
        scalefactor: float,
        data,
        overwrite: bool = False,
    ) -> None:
        """Encode ``data`` and write it to ``file`` (local path or fsspec URL).

        Raises
        ------
        FileExistsError
            If the file exists and ``overwrite`` is False.
        """
        fs, path = fsspec.core.url_to_fs(str(file))
        if not overwrite and fs.exists(path):
            raise FileExistsError(f"File already exists: {file}")
        payload = self.write_in_memory(compression_type, scalefactor, data)
        with fs.open(path, "wb") as f:
            f.write(payload)
        logger.debug(f"Wrote {len(payload)} bytes to {file}")


class OmFileReader:
    """Decodes a buffer produced by OmFileWriter.

    The buffer is only read, never modified.
    """

    def __init__(self, buffer):
        self._buffer = memoryview(buffer).toreadonly()
        if self._buffer.nbytes < HEADER.size:
            raise OmFileError(f"Buffer of {self._buffer.nbytes} bytes is too small for a header")

        magic, version, compression, dim0, dim1, chunk0, chunk1, scalefactor = HEADER.unpack_from(self._buffer)
        if magic != MAGIC:
            raise OmFileError(f"Invalid magic number {magic!r}")
        if version != VERSION:
            raise OmFileError(f"Unsupported version {version}")
        try:
            compression_type = CompressionType(compression)
        except ValueError:
            raise OmFileError(f"Unknown compression type {compression}") from None
        if min(dim0, dim1, chunk0, chunk1) == 0:
            raise OmFileError("Dimensions and chunk sizes must be positive")

        self.dim0 = dim0
        self.dim1 = dim1
        self.chunk0 = chunk0
        self.chunk1 = chunk1
        self.scalefactor = scalefactor
        self.compression_type = compression_type
        self._codec = _ChunkCodec(compression_type, scalefactor)

        self._n_chunks1 = math.ceil(dim1 / chunk1)
        n_chunks = math.ceil(dim0 / chunk0) * self._n_chunks1
        table_size = (n_chunks + 1) * 8
        if self._buffer.nbytes < HEADER.size + table_size:
            raise OmFileError("Buffer is truncated inside the offset table")
        self._offsets = np.frombuffer(self._buffer, dtype="<u8", count=n_chunks + 1, offset=HEADER.size)
        self._payload_start = HEADER.size + table_size
        if self._payload_start + int(self._offsets[-1]) > self._buffer.nbytes:
            raise OmFileError("Buffer is truncated inside the chunk payload")

    @classmethod
    def from_file(cls, file: Union[str, Path]) -> "OmFileReader":
        """Read a whole file (local path or fsspec URL) into memory."""
        with fsspec.open(str(file), mode="rb") as f:
            return cls(f.read())

    @property
    def shape(self) -> tuple[int, int]:
        return self.dim0, self.dim1

    def _read_chunk(self, i0: int, i1: int) -> np.ndarray:
        index = i0 * self._n_chunks1 + i1
        start = self._payload_start + int(self._offsets[index])
        end = self._payload_start + int(self._offsets[index + 1])
        if end < start:
            raise OmFileError(f"Chunk {index} has a negative length in the offset table")
        rows = min(self.chunk0, self.dim0 - i0 * self.chunk0)
        cols = min(self.chunk1, self.dim1 - i1 * self.chunk1)
        stored = self._codec.decode(self._buffer[start:end], rows * cols, index)
        return self._codec.dequantize(stored.reshape(rows, cols))

    def read(self, dim0_slice: slice = slice(None), dim1_slice: slice = slice(None)) -> np.ndarray:
        """Decode a window of the array.

        Only chunks intersecting the window are decompressed.

        Returns
        -------
        np.ndarray
            float32 array of shape (rows in dim0_slice, columns in dim1_slice).
        """
        start0, stop0, step0 = dim0_slice.indices(self.dim0)
        start1, stop1, step1 = dim1_slice.indices(self.dim1)
        if step0 != 1 or step1 != 1:
            raise ValueError("Only contiguous slices are supported")
        stop0 = max(stop0, start0)
        stop1 = max(stop1, start1)

        out = np.empty((stop0 - start0, stop1 - start1), dtype=np.float32)
        if out.size == 0:
            return out

        for i0 in range(start0 // self.chunk0, math.ceil(stop0 / self.chunk0)):
            c0 = i0 * self.chunk0
            for i1 in range(start1 // self.chunk1, math.ceil(stop1 / self.chunk1)):
                c1 = i1 * self.chunk1
                chunk = self._read_chunk(i0, i1)
                r0, r1 = max(start0, c0), min(stop0, c0 + chunk.shape[0])
                q0, q1 = max(start1, c1), min(stop1, c1 + chunk.shape[1])
                out[r0 - start0:r1 - start0, q0 - start1:q1 - start1] = chunk[r0 - c0:r1 - c0, q0 - c1:q1 - c1]
        return out

    def read_all(self) -> np.ndarray:
        """Decode the whole array as a flat row-major float32 array."""
        return self.read().ravel()
