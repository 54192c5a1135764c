"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

import boto3
from botocore.config import Config

from s3courier.application.model.params import TransferParams
from s3courier.application.model.responses import PartResult

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
    from mypy_boto3_s3.type_defs import (
        CreateMultipartUploadOutputTypeDef,
        GetObjectOutputTypeDef,
        UploadPartOutputTypeDef,
    )
else:
    S3Client = object
    CreateMultipartUploadOutputTypeDef = object
    GetObjectOutputTypeDef = object
    UploadPartOutputTypeDef = object

logger = logging.getLogger()


class StorageClient(Protocol):
    def initiate_multipart(
        self, bucket: str, key: str, metadata: Dict[str, str]
    ) -> Optional[str]:
        ...

    def upload_part(
        self, bucket: str, key: str, session_id: str, part_number: int, body: Any
    ) -> str:
        ...

    def complete_multipart(
        self, bucket: str, key: str, session_id: str, parts: List[PartResult]
    ) -> None:
        ...

    def get_object(self, bucket: str, key: str) -> Any:
        ...


class S3StorageClient:
    """
    Exposes the multipart and streaming GET calls of an S3 client
    through the StorageClient interface used by the transfer engine.

    Usage example:
        client = S3StorageClient.create_instance(params)
        upload_id = client.initiate_multipart("bucket", "key", {"token": "..."})
    """

    def __init__(self, s3: S3Client) -> None:
        self.s3 = s3

    @staticmethod
    def create_instance(params: TransferParams) -> "S3StorageClient":
        return S3StorageClient(create_s3_client(params))

    def initiate_multipart(
        self, bucket: str, key: str, metadata: Dict[str, str]
    ) -> Optional[str]:
        response: CreateMultipartUploadOutputTypeDef = self.s3.create_multipart_upload(
            Bucket=bucket, Key=key, Metadata=metadata
        )
        return response.get("UploadId")

    def upload_part(
        self, bucket: str, key: str, session_id: str, part_number: int, body: Any
    ) -> str:
        response: UploadPartOutputTypeDef = self.s3.upload_part(
            Body=body,
            Bucket=bucket,
            Key=key,
            PartNumber=part_number,
            UploadId=session_id,
        )
        return response.get("ETag", "")

    def complete_multipart(
        self, bucket: str, key: str, session_id: str, parts: List[PartResult]
    ) -> None:
        self.s3.complete_multipart_upload(
            Bucket=bucket,
            Key=key,
            UploadId=session_id,
            MultipartUpload={"Parts": [dict(part) for part in parts]},  # type: ignore[misc]
        )

    def get_object(self, bucket: str, key: str) -> Any:
        response: GetObjectOutputTypeDef = self.s3.get_object(Bucket=bucket, Key=key)
        return response["Body"]


def create_s3_client(params: TransferParams) -> S3Client:
    # total_max_attempts counts the first attempt, so 1 means no retries.
    # Without a checksum or payload hash botocore reads each part body once,
    # while sending it, on http and https endpoints alike.
    config = Config(
        region_name=params.region,
        retries={"total_max_attempts": params.tries, "mode": "standard"},
        request_checksum_calculation="when_required",
        s3={"payload_signing_enabled": False},
    )
    kwargs: Dict[str, Any] = {}
    if params.endpoint:
        kwargs["endpoint_url"] = params.endpoint
    if params.ca_cert_path:
        kwargs["verify"] = params.ca_cert_path

    logger.info(
        f"Creating s3 client for region {params.region} "
        f"with endpoint {params.endpoint or 'default'} and {params.tries} tries"
    )
    client: S3Client = boto3.client(
        "s3",
        aws_access_key_id=params.access_key_id,
        aws_secret_access_key=params.secret_access_key,
        aws_session_token=params.session_token or None,
        region_name=params.region,
        config=config,
        **kwargs,
    )
    return client
