"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import logging
import threading
from concurrent import futures
from typing import Callable, Optional

from s3courier.application.config import MAX_UPLOAD_WORKERS, RUNTIME_WORKERS
from s3courier.application.model.params import TransferParams
from s3courier.application.model.responses import TransferResult
from s3courier.application.storage.client import S3StorageClient, StorageClient
from s3courier.application.transfer.download import DownloadStreamer
from s3courier.application.transfer.facilitator import MultipartUploadFacilitator
from s3courier.application.transfer.progress import ProgressCallback
from s3courier.application.util.exceptions import LifecycleError, TransferError
from s3courier.application.util.logging_setup import (
    configure_logging,
    log_system_info,
)

ResultCallback = Callable[[bool, str], None]
ClientFactory = Callable[[TransferParams], StorageClient]

logger = logging.getLogger()


class TransferRuntime:
    """
    Owns the worker pool that runs transfers. Every transfer call reports its
    outcome through result_callback and never raises; failures are reported as
    (False, message). Accepted calls return a future resolving to the
    TransferResult, which carries the byte count of a successful transfer.

    Usage example:
        runtime = TransferRuntime()
        runtime.init(log_path="/var/log/s3courier")
        runtime.upload(params_json, on_result, on_progress)
        ...
        runtime.uninit()
    """

    def __init__(
        self,
        client_factory: ClientFactory = S3StorageClient.create_instance,
        max_concurrency: int = MAX_UPLOAD_WORKERS,
        workers: int = RUNTIME_WORKERS,
    ) -> None:
        self.client_factory = client_factory
        self.max_concurrency = max_concurrency
        self.workers = workers
        self.executor: Optional[futures.ThreadPoolExecutor] = None
        self.cancel_event = threading.Event()
        self._log_handler: Optional[logging.Handler] = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self.executor is not None

    def init(self, log_path: Optional[str] = None, configure_logs: bool = True) -> None:
        with self._lock:
            if self.executor is not None:
                return
            if configure_logs:
                self._log_handler = configure_logging(log_path)
            logger.info(f"init params: log_path={log_path}")
            log_system_info()
            self.cancel_event = threading.Event()
            self.executor = futures.ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="transfer"
            )

    def uninit(self, wait: bool = True) -> None:
        """
        Shuts the worker pool down. With wait=False, queued transfers are
        dropped and running ones are cancelled at their next read.
        """
        with self._lock:
            if self.executor is None:
                return
            executor, self.executor = self.executor, None
            if not wait:
                self.cancel_event.set()
        executor.shutdown(wait=wait, cancel_futures=not wait)
        logger.info("runtime shut down")
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler.close()
            self._log_handler = None

    def upload(
        self,
        params_str: str,
        result_callback: ResultCallback,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Optional["futures.Future[TransferResult]"]:
        logger.info("upload requested")
        return self._submit(
            "upload",
            params_str,
            result_callback,
            lambda params: self.run_upload(params, progress_callback),
        )

    def download(
        self, params_str: str, result_callback: ResultCallback
    ) -> Optional["futures.Future[TransferResult]"]:
        logger.info("download requested")
        return self._submit("download", params_str, result_callback, self.run_download)

    def run_upload(
        self, params: TransferParams, progress_callback: Optional[ProgressCallback] = None
    ) -> int:
        facilitator = MultipartUploadFacilitator(
            self.client_factory(params),
            params,
            progress_callback,
            max_concurrency=self.max_concurrency,
            cancel_event=self.cancel_event,
        )
        return facilitator.transfer()

    def run_download(self, params: TransferParams) -> int:
        streamer = DownloadStreamer(
            self.client_factory(params),
            params.bucket,
            params.key,
            params.file_path,
            cancel_event=self.cancel_event,
        )
        return streamer.download()

    def _submit(
        self,
        operation: str,
        params_str: str,
        result_callback: ResultCallback,
        job: Callable[[TransferParams], int],
    ) -> Optional["futures.Future[TransferResult]"]:
        executor = self.executor
        if executor is None:
            logger.error("runtime not initialized")
            _notify(result_callback, False, LifecycleError().message)
            return None

        try:
            params = TransferParams.from_json(params_str)
        except TransferError as e:
            logger.error(e.message)
            _notify(result_callback, False, e.message)
            return None
        logger.info(f"{operation} s3://{params.bucket}/{params.key} <-> {params.file_path}")

        try:
            return executor.submit(_run, operation, params, job, result_callback)
        except RuntimeError:
            # the pool was shut down between the check above and submit
            logger.error("runtime not initialized")
            _notify(result_callback, False, LifecycleError().message)
            return None


def _run(
    operation: str,
    params: TransferParams,
    job: Callable[[TransferParams], int],
    result_callback: ResultCallback,
) -> TransferResult:
    try:
        transferred = job(params)
    except TransferError as e:
        logger.error(f"{operation} failed: {e.message}")
        result = TransferResult.failed(e.message)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.exception(f"{operation} failed")
        result = TransferResult.failed(str(e) or type(e).__name__)
    else:
        logger.info(f"{operation} finished: {transferred} bytes")
        result = TransferResult(success=True, bytes_transferred=transferred)
    _notify(result_callback, result.success, result.message)
    return result


def _notify(result_callback: ResultCallback, success: bool, message: str) -> None:
    try:
        result_callback(success, message)
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("result callback raised")
