"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from dataclasses import dataclass
from typing import TypedDict


class PartResult(TypedDict):
    PartNumber: int
    ETag: str


@dataclass(frozen=True)
class TransferResult:
    success: bool
    message: str = ""
    bytes_transferred: int = 0

    @classmethod
    def failed(cls, message: str) -> "TransferResult":
        return cls(success=False, message=message)
