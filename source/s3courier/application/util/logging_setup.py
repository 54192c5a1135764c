"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import json
import logging
import os
import platform
import socket
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, Optional

import psutil

from s3courier.application.config import LOG_BACKUP_COUNT, LOG_FILE_NAME

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(name)s: %(message)s"

logger = logging.getLogger()


def configure_logging(log_path: Optional[str] = None) -> logging.Handler:
    """
    Sends log records to a file in log_path, rotated daily with a week of
    history kept, or to stdout when log_path is not an existing directory.
    """
    handler: logging.Handler
    if log_path and os.path.isdir(log_path):
        handler = TimedRotatingFileHandler(
            os.path.join(log_path, LOG_FILE_NAME),
            when="midnight",
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    return handler


def system_info() -> Dict[str, Any]:
    memory = psutil.virtual_memory()
    return {
        "system name": platform.system(),
        "system kernel version": platform.release(),
        "system os version": platform.version(),
        "system host name": socket.gethostname(),
        "python version": platform.python_version(),
        "cpu count": os.cpu_count(),
        "total memory": memory.total,
        "used memory": memory.used,
    }


def log_system_info() -> None:
    logger.info(f"system info: {json.dumps(system_info())}")
