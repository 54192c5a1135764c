"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError

from s3courier.application.config import DOWNLOAD_READ_SIZE
from s3courier.application.transfer.cancellation import Cancellable
from s3courier.application.util.exceptions import (
    DownloadError,
    LocalIOError,
    TransferCancelled,
)

if TYPE_CHECKING:
    from s3courier.application.storage.client import StorageClient
else:
    StorageClient = object

logger = logging.getLogger()


class DownloadStreamer:
    def __init__(
        self,
        client: StorageClient,
        bucket: str,
        key: str,
        file_path: str,
        read_size: int = DOWNLOAD_READ_SIZE,
        cancel_event: Optional[Cancellable] = None,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.key = key
        self.file_path = file_path
        self.read_size = read_size
        self.cancel_event = cancel_event
        self.bytes_written = 0

    def download(self) -> int:
        """
        Streams the object into the local file, writing every chunk as soon as
        it arrives. Returns the number of bytes written.
        """
        try:
            body = self.client.get_object(self.bucket, self.key)
        except (ClientError, BotoCoreError) as e:
            raise DownloadError(self.bucket, self.key, str(e)) from e

        try:
            with open(self.file_path, "wb") as fileobj:
                for chunk in self._iter_chunks(body):
                    if self.cancel_event is not None and self.cancel_event.is_set():
                        raise TransferCancelled()
                    fileobj.write(chunk)
                    self.bytes_written += len(chunk)
        except OSError as e:
            raise LocalIOError(self.file_path, str(e)) from e
        except (ClientError, BotoCoreError) as e:
            raise DownloadError(self.bucket, self.key, str(e)) from e
        finally:
            close = getattr(body, "close", None)
            if close is not None:
                close()

        logger.info(f"get_object wrote {self.bytes_written} bytes to {self.file_path}")
        return self.bytes_written

    def _iter_chunks(self, body: Any) -> Iterator[bytes]:
        if hasattr(body, "iter_chunks"):
            yield from body.iter_chunks(chunk_size=self.read_size)
            return
        while chunk := body.read(self.read_size):
            yield chunk
