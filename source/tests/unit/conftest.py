"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import os
import typing

import boto3
import pytest

from moto import mock_aws

from s3courier.application.model.params import TransferParams


if typing.TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
else:
    S3Client = object

TEST_BUCKET = "test-bucket"
TEST_REGION = "us-east-1"


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto"""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = TEST_REGION
    os.environ["AWS_REGION"] = TEST_REGION


@pytest.fixture
def s3_client(aws_credentials: None) -> typing.Iterator[S3Client]:
    with mock_aws():
        connection: S3Client = boto3.client("s3", region_name=TEST_REGION)
        connection.create_bucket(Bucket=TEST_BUCKET)
        yield connection


@pytest.fixture
def transfer_request(tmp_path: typing.Any) -> typing.Dict[str, typing.Any]:
    return {
        "bucket": TEST_BUCKET,
        "object": "reports%2F2024%2Fannual%20report.bin",
        "access_key_id": "testing",
        "secret_access_key": "testing",
        "session_token": "testing",
        "security_token": "opaque-security-token",
        "file_path": str(tmp_path / "payload.bin"),
        "region": TEST_REGION,
        "tries": 1,
    }


@pytest.fixture
def transfer_params(transfer_request: typing.Dict[str, typing.Any]) -> TransferParams:
    return TransferParams.from_request(transfer_request)


@pytest.fixture
def write_file() -> typing.Callable[[str, int], bytes]:
    def _write_file(path: str, size: int) -> bytes:
        data = os.urandom(size)
        with open(path, "wb") as f:
            f.write(data)
        return data

    return _write_file
