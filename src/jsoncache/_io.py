"""Backing-file primitives: existence check, decode on load, atomic write."""

from __future__ import annotations

import json
import os
import tempfile

from jsoncache.errors import DecodeError


def exists(path: str) -> bool:
    # Anything at path counts; reading a directory then fails loudly in open().
    return os.path.exists(path)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def read_document(path: str) -> dict | list:
    """Read and decode the JSON document at path.

    Raises DecodeError for malformed JSON (including NaN/Infinity) or a
    top-level scalar. OSError from the read itself propagates unchanged.
    """
    with open(path, encoding="utf-8") as f:
        text = f.read()
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise DecodeError(f"{path}: {e}") from e
    if not isinstance(data, (dict, list)):
        raise DecodeError(
            f"{path}: top-level value must be an object or array, got {type(data).__name__}"
        )
    return data


def write_document(path: str, data: dict | list) -> None:
    """Encode data and replace the file at path in one step.

    The document goes to a temp file in the same directory first, so readers
    only ever see the previous snapshot or the new one.
    """
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        prefix=os.path.basename(path) + ".", suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, allow_nan=False)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
