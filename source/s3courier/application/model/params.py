"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, TypedDict
from urllib.parse import unquote

from s3courier.application.config import DEFAULT_REGION, DEFAULT_TRIES
from s3courier.application.util.exceptions import ConfigError, DecodeError


class _TransferRequestRequired(TypedDict):
    bucket: str
    object: str
    access_key_id: str
    secret_access_key: str
    session_token: str
    security_token: str
    file_path: str


class TransferRequest(_TransferRequestRequired, total=False):
    region: Optional[str]
    tries: Optional[int]
    endpoint: Optional[str]
    ca_cert_path: Optional[str]


REQUIRED_FIELDS = tuple(_TransferRequestRequired.__annotations__)
OPTIONAL_STRING_FIELDS = ("region", "endpoint", "ca_cert_path")


@dataclass(frozen=True)
class TransferParams:
    bucket: str
    key: str
    file_path: str
    access_key_id: str
    secret_access_key: str
    session_token: str
    security_token: str
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None
    tries: int = DEFAULT_TRIES
    ca_cert_path: Optional[str] = None

    @classmethod
    def from_json(cls, params_str: str) -> "TransferParams":
        try:
            request = json.loads(params_str)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"parse params failed: {e}") from e
        if not isinstance(request, dict):
            raise ConfigError("parse params failed: expected a JSON object")
        return cls.from_request(request)

    @classmethod
    def from_request(cls, request: Dict[str, Any]) -> "TransferParams":
        for name in REQUIRED_FIELDS:
            if name not in request or request[name] is None:
                raise ConfigError(f"parse params failed: missing field `{name}`")
            if not isinstance(request[name], str):
                raise ConfigError(
                    f"parse params failed: field `{name}` should be a string"
                )

        optional: Dict[str, Optional[str]] = {}
        for name in OPTIONAL_STRING_FIELDS:
            value = request.get(name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(
                    f"parse params failed: field `{name}` should be a string"
                )
            # empty strings are what the CLI sends for unset flags
            optional[name] = value or None

        tries = request.get("tries")
        if tries is None:
            tries = DEFAULT_TRIES
        elif isinstance(tries, bool) or not isinstance(tries, int) or tries < 1:
            raise ConfigError(
                "parse params failed: field `tries` should be a positive integer"
            )

        return cls(
            bucket=request["bucket"],
            key=decode_object_key(request["object"]),
            file_path=request["file_path"],
            access_key_id=request["access_key_id"],
            secret_access_key=request["secret_access_key"],
            session_token=request["session_token"],
            security_token=request["security_token"],
            region=optional["region"] or DEFAULT_REGION,
            endpoint=optional["endpoint"],
            tries=tries,
            ca_cert_path=optional["ca_cert_path"],
        )


def decode_object_key(value: str) -> str:
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeError(value, str(e)) from e
