"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import os

DEFAULT_CHUNK_SIZE = int(os.getenv("S3COURIER_CHUNK_SIZE", str(5 * 1024 * 1024)))
# S3 rejects multipart uploads with more parts than this.
MAX_CHUNK_COUNT = 10000

DEFAULT_REGION = os.getenv("S3COURIER_DEFAULT_REGION", "ap-southeast-1")
DEFAULT_TRIES = 1
CLI_DEFAULT_TRIES = 3

MAX_UPLOAD_WORKERS = int(os.getenv("S3COURIER_MAX_CONCURRENCY", "8"))
RUNTIME_WORKERS = 8

PROGRESS_INTERVAL_SECONDS = 0.5
DOWNLOAD_READ_SIZE = 1024 * 1024

SECURITY_TOKEN_METADATA_KEY = "token"
LOG_FILE_NAME = "s3courier.log"
LOG_BACKUP_COUNT = 7
