"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""


class TransferError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ConfigError(TransferError):
    pass


class LifecycleError(TransferError):
    def __init__(self, message: str = "runtime not initialized") -> None:
        super().__init__(message)


class EmptyFileError(TransferError):
    def __init__(self, file_path: str) -> None:
        super().__init__(f"File: {file_path} is empty, file size is 0")


class SessionInitError(TransferError):
    def __init__(self, bucket: str, key: str, reason: str = "upload_id is none") -> None:
        super().__init__(
            f"Failed to initiate multipart upload for s3://{bucket}/{key}: {reason}"
        )


class PartTransferError(TransferError):
    def __init__(self, part_number: int, reason: str) -> None:
        self.part_number = part_number
        super().__init__(f"Upload of part {part_number} failed: {reason}")


class CompletionError(TransferError):
    def __init__(self, session_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to complete multipart upload with upload id: {session_id}: {reason}"
        )


class LocalIOError(TransferError):
    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(f"Local file: {file_path} could not be accessed: {reason}")


class DecodeError(TransferError):
    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"url decode param object failed: {value!r}: {reason}")


class DownloadError(TransferError):
    def __init__(self, bucket: str, key: str, reason: str) -> None:
        super().__init__(f"Failed to download s3://{bucket}/{key}: {reason}")


class TransferCancelled(TransferError):
    def __init__(self) -> None:
        super().__init__("Transfer was cancelled.")
