"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import pathlib

import pytest

SOURCE_ROOT = pathlib.Path(__file__).resolve().parents[1]

LICENSE_HEADER = [
    '"""',
    "Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.",
    "SPDX-License-Identifier: Apache-2.0",
    '"""',
]


def _source_files() -> list:
    return sorted(
        path
        for path in SOURCE_ROOT.glob("**/*.py")
        if path.stat().st_size > 0
    )


@pytest.mark.parametrize(
    "path", _source_files(), ids=lambda p: str(p.relative_to(SOURCE_ROOT))
)
def test_license_header(path: pathlib.Path) -> None:
    with open(path) as f:
        head = [f.readline().strip() for _ in LICENSE_HEADER]
    assert head == LICENSE_HEADER
