# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import hashlib
from pathlib import Path
from typing import Union


def calculate_file_sha256(path: Union[str, Path]) -> str:
    """
    Calculate SHA256 of a file as a hex string.
    :param path: local path of the file
    :return hex encoded SHA256 hash of the file content
    """
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def short_digest(seed: str, length: int = 8) -> str:
    """Deterministic upper-case hex digest used to keep generated names unique within an account"""
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:length].upper()
