"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import io
import logging
import typing

from botocore.exceptions import BotoCoreError, ClientError

from s3courier.application.model.responses import PartResult
from s3courier.application.transfer.cancellation import Cancellable
from s3courier.application.transfer.progress import ProgressAggregator
from s3courier.application.util.exceptions import (
    LocalIOError,
    PartTransferError,
    TransferCancelled,
)

if typing.TYPE_CHECKING:
    from s3courier.application.storage.client import StorageClient
else:
    StorageClient = object

logger = logging.getLogger()


class ProgressStream(io.RawIOBase):
    """
    Read-only view of the byte range [offset, offset + length) of a file.

    Bytes read by the transport are reported to the aggregator before they
    are returned. A retry seeks back and reads the range again; only bytes
    past the furthest position already reached are reported, so a retried
    part is never counted twice.
    """

    def __init__(
        self,
        fileobj: typing.BinaryIO,
        offset: int,
        length: int,
        aggregator: ProgressAggregator,
        cancel_event: typing.Optional[Cancellable] = None,
    ) -> None:
        super().__init__()
        self.fileobj = fileobj
        self.offset = offset
        self.length = length
        self.aggregator = aggregator
        self.cancel_event = cancel_event
        self.position = 0
        self.high_water_mark = 0
        self.fileobj.seek(offset)

    def __len__(self) -> int:
        return self.length

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self.position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self.position + offset
        elif whence == io.SEEK_END:
            position = self.length + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        self.position = max(0, min(position, self.length))
        self.fileobj.seek(self.offset + self.position)
        return self.position

    def read(self, size: typing.Optional[int] = -1) -> bytes:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise TransferCancelled()
        remaining = self.length - self.position
        if size is None or size < 0 or size > remaining:
            size = remaining
        if size == 0:
            return b""
        data = self.fileobj.read(size)
        self.position += len(data)
        if self.position > self.high_water_mark:
            self.aggregator.add(self.position - self.high_water_mark)
            self.high_water_mark = self.position
        return data

    def readinto(self, buffer: typing.Any) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)


class PartUpload:
    def __init__(
        self,
        client: StorageClient,
        bucket: str,
        key: str,
        session_id: str,
        file_path: str,
        part_number: int,
        offset: int,
        length: int,
        aggregator: ProgressAggregator,
        cancel_event: typing.Optional[Cancellable] = None,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.key = key
        self.session_id = session_id
        self.file_path = file_path
        self.part_number = part_number
        self.offset = offset
        self.length = length
        self.aggregator = aggregator
        self.cancel_event = cancel_event

    def run(self) -> PartResult:
        if self._cancelled():
            raise TransferCancelled()

        logger.debug(
            f"Uploading part {self.part_number} "
            f"(offset: {self.offset}, length: {self.length})"
        )
        try:
            with open(self.file_path, "rb") as fileobj:
                body = ProgressStream(
                    fileobj,
                    self.offset,
                    self.length,
                    self.aggregator,
                    self.cancel_event,
                )
                etag = self.client.upload_part(
                    self.bucket,
                    self.key,
                    self.session_id,
                    self.part_number,
                    body,
                )
        except (ClientError, BotoCoreError) as e:
            # botocore wraps errors raised by the body while it is being sent
            if self._cancelled() or isinstance(
                getattr(e, "kwargs", {}).get("error"), TransferCancelled
            ):
                raise TransferCancelled() from e
            raise PartTransferError(self.part_number, str(e)) from e
        except OSError as e:
            raise LocalIOError(self.file_path, str(e)) from e

        logger.debug(f"Uploaded part {self.part_number} with etag {etag}")
        return {"PartNumber": self.part_number, "ETag": etag}

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()
