"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import dataclasses
import io
import json
import logging
import threading
import typing
from unittest.mock import MagicMock

import pytest

from s3courier.application.model.params import TransferParams
from s3courier.application.model.responses import TransferResult
from s3courier.application.runtime import TransferRuntime

if typing.TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:
    S3Client = object

FILE_SIZE = 5 * 1024 * 1024 + 1234


class ResultRecorder:
    def __init__(self) -> None:
        self.results: typing.List[typing.Tuple[bool, str]] = []

    def __call__(self, success: bool, message: str) -> None:
        self.results.append((success, message))


@pytest.fixture
def runtime() -> typing.Iterator[TransferRuntime]:
    transfer_runtime = TransferRuntime()
    transfer_runtime.init(configure_logs=False)
    yield transfer_runtime
    transfer_runtime.uninit()


def test_upload_before_init(transfer_request: typing.Dict[str, typing.Any]) -> None:
    recorder = ResultRecorder()
    client_factory = MagicMock()
    runtime = TransferRuntime(client_factory=client_factory)

    assert runtime.upload(json.dumps(transfer_request), recorder) is None

    assert recorder.results == [(False, "runtime not initialized")]
    client_factory.assert_not_called()


def test_download_before_init(transfer_request: typing.Dict[str, typing.Any]) -> None:
    recorder = ResultRecorder()
    runtime = TransferRuntime()
    assert runtime.download(json.dumps(transfer_request), recorder) is None
    assert recorder.results == [(False, "runtime not initialized")]


def test_double_init_is_noop() -> None:
    runtime = TransferRuntime()
    runtime.init(configure_logs=False)
    executor = runtime.executor
    runtime.init(configure_logs=False)
    assert runtime.executor is executor
    runtime.uninit()
    assert not runtime.initialized


def test_uninit_without_init_is_noop() -> None:
    runtime = TransferRuntime()
    runtime.uninit()
    assert not runtime.initialized


def test_upload_after_uninit(transfer_request: typing.Dict[str, typing.Any]) -> None:
    recorder = ResultRecorder()
    runtime = TransferRuntime()
    runtime.init(configure_logs=False)
    runtime.uninit()
    runtime.upload(json.dumps(transfer_request), recorder)
    assert recorder.results == [(False, "runtime not initialized")]


def test_forced_uninit_cancels_transfers() -> None:
    runtime = TransferRuntime()
    runtime.init(configure_logs=False)
    runtime.uninit(wait=False)
    assert runtime.cancel_event.is_set()


class BlockingClient:
    """Holds every request until the runtime cancels its transfers."""

    def __init__(self) -> None:
        self.sending = threading.Event()
        self.release = threading.Event()

    def initiate_multipart(
        self, bucket: str, key: str, metadata: typing.Dict[str, str]
    ) -> str:
        return "upload1"

    def upload_part(
        self, bucket: str, key: str, session_id: str, part_number: int, body: typing.Any
    ) -> str:
        self.sending.set()
        self.release.wait(5)
        body.read()
        return "etag1"

    def complete_multipart(
        self, bucket: str, key: str, session_id: str, parts: typing.Any
    ) -> None:
        pass

    def get_object(self, bucket: str, key: str) -> typing.Any:
        self.sending.set()
        self.release.wait(5)
        return io.BytesIO(b"object-data")


@pytest.mark.parametrize("operation", ["upload", "download"])
def test_forced_uninit_stops_running_transfer(
    transfer_request: typing.Dict[str, typing.Any],
    write_file: typing.Callable[[str, int], bytes],
    operation: str,
) -> None:
    write_file(transfer_request["file_path"], 4096)
    client = BlockingClient()
    runtime = TransferRuntime(client_factory=lambda params: client)
    runtime.init(configure_logs=False)
    client.release = runtime.cancel_event
    recorder = ResultRecorder()

    future = getattr(runtime, operation)(json.dumps(transfer_request), recorder)
    assert future is not None
    assert client.sending.wait(5)
    runtime.uninit(wait=False)

    assert future.result(timeout=5) == TransferResult.failed("Transfer was cancelled.")
    assert recorder.results == [(False, "Transfer was cancelled.")]


def test_init_configures_log_file(tmp_path: typing.Any) -> None:
    runtime = TransferRuntime()
    runtime.init(log_path=str(tmp_path))
    handler = runtime._log_handler
    assert handler in logging.getLogger().handlers
    runtime.uninit()
    assert handler not in logging.getLogger().handlers
    assert (tmp_path / "s3courier.log").exists()


def test_upload_invalid_params(runtime: TransferRuntime) -> None:
    recorder = ResultRecorder()
    assert runtime.upload("{}", recorder) is None
    assert recorder.results[0][0] is False
    assert "missing field `bucket`" in recorder.results[0][1]


def test_upload_invalid_object_key(
    runtime: TransferRuntime, transfer_request: typing.Dict[str, typing.Any]
) -> None:
    recorder = ResultRecorder()
    transfer_request["object"] = "bad%FFkey"
    runtime.upload(json.dumps(transfer_request), recorder)
    assert recorder.results[0][0] is False
    assert recorder.results[0][1].startswith("url decode param object failed")


def test_upload_empty_file(
    s3_client: S3Client,
    runtime: TransferRuntime,
    transfer_request: typing.Dict[str, typing.Any],
) -> None:
    open(transfer_request["file_path"], "wb").close()
    recorder = ResultRecorder()

    future = runtime.upload(json.dumps(transfer_request), recorder)
    assert future is not None
    assert future.result().success is False

    assert recorder.results[0][0] is False
    assert "file size is 0" in recorder.results[0][1]


def test_unexpected_error_is_reported(
    transfer_request: typing.Dict[str, typing.Any]
) -> None:
    recorder = ResultRecorder()
    runtime = TransferRuntime(client_factory=MagicMock(side_effect=RuntimeError("boom")))
    runtime.init(configure_logs=False)

    future = runtime.download(json.dumps(transfer_request), recorder)
    assert future is not None
    assert future.result() == TransferResult.failed("boom")
    runtime.uninit()

    assert recorder.results == [(False, "boom")]


def test_round_trip(
    s3_client: S3Client,
    runtime: TransferRuntime,
    transfer_request: typing.Dict[str, typing.Any],
    write_file: typing.Callable[[str, int], bytes],
    tmp_path: typing.Any,
) -> None:
    data = write_file(transfer_request["file_path"], FILE_SIZE)
    upload_recorder = ResultRecorder()
    progress: typing.List[float] = []

    future = runtime.upload(json.dumps(transfer_request), upload_recorder, progress.append)
    assert future is not None
    assert future.result() == TransferResult(success=True, bytes_transferred=FILE_SIZE)

    assert upload_recorder.results == [(True, "")]
    assert progress == sorted(progress)
    assert progress[-1] == 100.0

    head = s3_client.head_object(
        Bucket="test-bucket", Key="reports/2024/annual report.bin"
    )
    assert head["ContentLength"] == FILE_SIZE
    assert head["Metadata"] == {"token": "opaque-security-token"}

    download_request = dict(transfer_request, file_path=str(tmp_path / "copy.bin"))
    download_recorder = ResultRecorder()
    future = runtime.download(json.dumps(download_request), download_recorder)
    assert future is not None
    assert future.result().bytes_transferred == FILE_SIZE

    assert download_recorder.results == [(True, "")]
    with open(download_request["file_path"], "rb") as f:
        assert f.read() == data


def test_run_upload_and_download_report_bytes(
    s3_client: S3Client,
    runtime: TransferRuntime,
    transfer_params: TransferParams,
    write_file: typing.Callable[[str, int], bytes],
    tmp_path: typing.Any,
) -> None:
    write_file(transfer_params.file_path, 4096)
    assert runtime.run_upload(transfer_params) == 4096

    copy_params = dataclasses.replace(
        transfer_params, file_path=str(tmp_path / "copy.bin")
    )
    assert runtime.run_download(copy_params) == 4096
