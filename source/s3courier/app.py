"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import json
import logging
import sys
import threading
from typing import Any, Callable, Dict, List, Optional

import click

from s3courier.application.config import CLI_DEFAULT_TRIES, MAX_UPLOAD_WORKERS
from s3courier.application.runtime import TransferRuntime

logger = logging.getLogger()


def _transfer_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option("--bucket", required=True),
        click.option("--object", "object_key", required=True, help="URL-encoded key"),
        click.option("--access-key-id", required=True),
        click.option("--secret-access-key", required=True),
        click.option("--session-token", required=True),
        click.option("--security-token", required=True),
        click.option("--file-path", required=True, type=click.Path(dir_okay=False)),
        click.option("--ca-cert-path", default=""),
        click.option("--region", default=""),
        click.option("--tries", default=CLI_DEFAULT_TRIES, show_default=True, type=int),
        click.option("--endpoint", default=""),
        click.option("--log-path", default="", help="Log directory, stdout if unset"),
        click.option(
            "--max-concurrency",
            default=MAX_UPLOAD_WORKERS,
            show_default=True,
            type=click.IntRange(min=1),
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _request(options: Dict[str, Any]) -> str:
    return json.dumps(
        {
            "bucket": options["bucket"],
            "object": options["object_key"],
            "access_key_id": options["access_key_id"],
            "secret_access_key": options["secret_access_key"],
            "session_token": options["session_token"],
            "security_token": options["security_token"],
            "file_path": options["file_path"],
            "ca_cert_path": options["ca_cert_path"],
            "region": options["region"],
            "tries": options["tries"],
            "endpoint": options["endpoint"],
        }
    )


def _run(command: str, options: Dict[str, Any]) -> None:
    runtime = TransferRuntime(max_concurrency=options["max_concurrency"])
    runtime.init(log_path=options["log_path"] or None)

    finished = threading.Event()
    outcome: List[bool] = []

    def on_result(success: bool, message: str) -> None:
        logger.info(f"{command} finished: {success}")
        logger.info(f"{command} message: {message}")
        outcome.append(success)
        finished.set()

    def on_progress(progress: float) -> None:
        logger.info(f"put object progress: {progress:.2f}%")

    if command == "upload":
        runtime.upload(_request(options), on_result, on_progress)
    else:
        runtime.download(_request(options), on_result)
    finished.wait()
    runtime.uninit()

    if not outcome[0]:
        sys.exit(1)


@click.group()
def cli() -> None:
    """Upload and download large files to S3-compatible object storage."""


@cli.command()
@_transfer_options
def upload(**options: Any) -> None:
    """Upload FILE_PATH to BUCKET/OBJECT as a multipart upload."""
    _run("upload", options)


@cli.command()
@_transfer_options
def download(**options: Any) -> None:
    """Download BUCKET/OBJECT to FILE_PATH."""
    _run("download", options)


def main(args: Optional[List[str]] = None) -> None:
    cli.main(args=args, prog_name="s3courier")
