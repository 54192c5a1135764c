"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import logging
import os
from concurrent import futures
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from botocore.exceptions import BotoCoreError, ClientError

from s3courier.application.chunking.plan import ChunkPlan, plan
from s3courier.application.config import (
    DEFAULT_CHUNK_SIZE,
    MAX_CHUNK_COUNT,
    MAX_UPLOAD_WORKERS,
    SECURITY_TOKEN_METADATA_KEY,
)
from s3courier.application.model.params import TransferParams
from s3courier.application.model.responses import PartResult
from s3courier.application.transfer.cancellation import Cancellable, CancelSignal
from s3courier.application.transfer.progress import ProgressAggregator, ProgressCallback
from s3courier.application.transfer.upload import PartUpload
from s3courier.application.util.exceptions import (
    CompletionError,
    EmptyFileError,
    LocalIOError,
    SessionInitError,
    TransferCancelled,
)

if TYPE_CHECKING:
    from s3courier.application.storage.client import StorageClient
else:
    StorageClient = object

logger = logging.getLogger()


class UploadState(Enum):
    IDLE = "Idle"
    SESSION_INITIATED = "SessionInitiated"
    PARTS_IN_FLIGHT = "PartsInFlight"
    COMPLETING = "Completing"
    COMPLETED = "Completed"
    ABORTED = "Aborted"


class MultipartUploadFacilitator:
    def __init__(
        self,
        client: StorageClient,
        params: TransferParams,
        progress_callback: Optional[ProgressCallback] = None,
        max_concurrency: int = MAX_UPLOAD_WORKERS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_chunk_count: int = MAX_CHUNK_COUNT,
        cancel_event: Optional[Cancellable] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("At least one upload worker is required.")
        self.client = client
        self.params = params
        self.progress_callback = progress_callback
        self.max_concurrency = max_concurrency
        self.chunk_size = chunk_size
        self.max_chunk_count = max_chunk_count
        # set by the first failing part, or from outside to stop the transfer
        self.cancel_event = CancelSignal(cancel_event)

        self.state = UploadState.IDLE
        self.session_id: Optional[str] = None
        self.parts: List[PartResult] = []

    def transfer(self) -> int:
        """
        Uploads the local file to the destination bucket as a multipart upload.

        :return: The number of bytes uploaded, equal to the size of the file.
        :rtype: int

        :raises EmptyFileError: If the local file is empty.
        :raises LocalIOError: If the local file can not be read.
        :raises SessionInitError: If the multipart upload could not be initiated.
        :raises PartTransferError: If one of the parts failed to upload.
        :raises CompletionError: If the multipart upload could not be completed.
        """
        try:
            file_size = self._file_size()
            self.session_id = self._initiate()
            self.state = UploadState.SESSION_INITIATED

            chunk_plan = plan(file_size, self.chunk_size, self.max_chunk_count)
            logger.info(f"upload_chunk_info: {chunk_plan}")
            aggregator = ProgressAggregator(file_size, self.progress_callback)

            self.state = UploadState.PARTS_IN_FLIGHT
            self.parts = self._upload_parts(self.session_id, chunk_plan, aggregator)
            logger.info("upload_parts finished")

            self.state = UploadState.COMPLETING
            self._complete(self.session_id, self.parts)
        except Exception:
            self.state = UploadState.ABORTED
            raise

        self.state = UploadState.COMPLETED
        return file_size

    def _file_size(self) -> int:
        try:
            file_size = os.stat(self.params.file_path).st_size
        except OSError as e:
            raise LocalIOError(self.params.file_path, str(e)) from e
        if file_size == 0:
            raise EmptyFileError(self.params.file_path)
        return file_size

    def _initiate(self) -> str:
        metadata = {SECURITY_TOKEN_METADATA_KEY: self.params.security_token}
        try:
            session_id = self.client.initiate_multipart(
                self.params.bucket, self.params.key, metadata
            )
        except (ClientError, BotoCoreError) as e:
            raise SessionInitError(self.params.bucket, self.params.key, str(e)) from e
        if not session_id:
            raise SessionInitError(self.params.bucket, self.params.key)
        logger.info(f"Initiated multipart upload with upload id: {session_id}")
        return session_id

    def _upload_parts(
        self, session_id: str, chunk_plan: ChunkPlan, aggregator: ProgressAggregator
    ) -> List[PartResult]:
        results: Dict[int, PartResult] = {}
        first_error: Optional[BaseException] = None
        pending = iter(chunk_plan.ranges())

        with futures.ThreadPoolExecutor(
            max_workers=self.max_concurrency, thread_name_prefix="part-upload"
        ) as upload_executor:
            in_flight: Set[futures.Future[PartResult]] = set()
            while True:
                while (
                    len(in_flight) < self.max_concurrency
                    and not self.cancel_event.is_set()
                ):
                    chunk = next(pending, None)
                    if chunk is None:
                        break
                    part_number, offset, length = chunk
                    task = PartUpload(
                        self.client,
                        self.params.bucket,
                        self.params.key,
                        session_id,
                        self.params.file_path,
                        part_number,
                        offset,
                        length,
                        aggregator,
                        self.cancel_event,
                    )
                    in_flight.add(upload_executor.submit(task.run))
                if not in_flight:
                    break
                completed, in_flight = futures.wait(
                    in_flight, return_when=futures.FIRST_COMPLETED
                )
                for future in completed:
                    error = future.exception()
                    if error is None:
                        part = future.result()
                        results[part["PartNumber"]] = part
                        continue
                    if first_error is None or isinstance(first_error, TransferCancelled):
                        if not isinstance(error, TransferCancelled):
                            logger.error(f"Stopping upload after failure: {error}")
                        first_error = error
                    self.cancel_event.set()

        if first_error is not None:
            raise first_error
        if len(results) != chunk_plan.chunk_count:
            raise TransferCancelled()
        return [results[part_number] for part_number in sorted(results)]

    def _complete(self, session_id: str, parts: List[PartResult]) -> None:
        try:
            self.client.complete_multipart(
                self.params.bucket, self.params.key, session_id, parts
            )
        except (ClientError, BotoCoreError) as e:
            raise CompletionError(session_id, str(e)) from e
        logger.info(f"Completed multipart upload with {len(parts)} parts")
