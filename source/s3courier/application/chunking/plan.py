"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True)
class ChunkPlan:
    chunk_count: int
    chunk_size: int
    size_of_last_chunk: int

    def ranges(self) -> Iterator[Tuple[int, int, int]]:
        """
        Yields (part_number, offset, length) for every chunk of the plan.
        Part numbers start at 1 while offsets are computed from the 0-based chunk index.
        """
        for index in range(self.chunk_count):
            length = (
                self.size_of_last_chunk
                if index == self.chunk_count - 1
                else self.chunk_size
            )
            yield index + 1, index * self.chunk_size, length


def plan(file_size: int, default_chunk_size: int, max_chunk_count: int) -> ChunkPlan:
    """
    Lays out a file of file_size bytes in chunks of default_chunk_size bytes.
    The chunk size grows when the file would otherwise need more than
    max_chunk_count parts.
    """

    if file_size < 1:
        raise ValueError("File size should be at least 1 byte to be chunked.")
    if default_chunk_size < 1:
        raise ValueError("Chunk size should be at least 1 byte.")

    chunk_size = default_chunk_size
    if file_size > default_chunk_size * max_chunk_count:
        chunk_size = file_size // max(max_chunk_count - 1, 1)

    size_of_last_chunk = file_size % chunk_size
    chunk_count = file_size // chunk_size + 1
    if size_of_last_chunk == 0:
        # no trailing zero-length part
        size_of_last_chunk = chunk_size
        chunk_count = max(chunk_count - 1, 1)

    return ChunkPlan(
        chunk_count=chunk_count,
        chunk_size=chunk_size,
        size_of_last_chunk=size_of_last_chunk,
    )
