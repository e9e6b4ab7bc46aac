"""Report file codec — gzip-framed JSON record list.

Wire format:
    gzip( utf-8( JSON array of {count, fraction, fingerprint, schema, text} ) )

The record list is repetitive (short, similar strings), so the gzip frame
keeps files small. Decoding validates every record strictly and raises
CodecError on any truncated, corrupt, or mistyped input; it never
returns partial data.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
import tempfile
import zlib
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..errors import CodecError, ReportIOError
from .model import QueryRecord, Report

logger = logging.getLogger(__name__)

REPORT_SUFFIX = ".qrep"


class _WireRecord(BaseModel):
    """On-disk shape of one QueryRecord."""
    model_config = ConfigDict(strict=True, extra="forbid")

    count: int
    fraction: float
    fingerprint: str
    # "schema" shadows a BaseModel attribute
    schema_: str = Field(alias="schema")
    text: str


_WIRE_LIST = TypeAdapter(List[_WireRecord])


def encode(records: Iterable[QueryRecord]) -> bytes:
    """Serialize records into a compressed report payload."""
    payload = [
        {
            "count": r.count,
            "fraction": float(r.fraction),
            "fingerprint": r.fingerprint,
            "schema": r.schema,
            "text": r.text,
        }
        for r in records
    ]
    raw = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return gzip.compress(raw, mtime=0)


def decode(data: bytes) -> List[QueryRecord]:
    """Deserialize a compressed report payload.

    Raises:
        CodecError: If the payload is truncated, corrupt, or not a list
            of well-formed records.
    """
    try:
        raw = gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CodecError(f"corrupt or truncated report data: {e}") from e

    try:
        doc = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CodecError(f"undecodable report payload: {e}") from e

    try:
        wire = _WIRE_LIST.validate_python(doc)
    except ValidationError as e:
        raise CodecError(
            f"report payload has wrong shape ({e.error_count()} errors): "
            f"{e.errors()[0]['msg']}"
        ) from e

    return [
        QueryRecord(
            count=w.count,
            fraction=w.fraction,
            fingerprint=w.fingerprint,
            schema=w.schema_,
            text=w.text,
        )
        for w in wire
    ]


def _current_umask() -> int:
    # The umask can only be read by setting it.
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_report(path: Union[str, Path], records: Iterable[QueryRecord]) -> Path:
    """Atomically write records to *path*.

    The payload goes to a temporary file in the destination directory and
    is renamed over *path* only after a successful flush, so a failure
    never leaves a valid-looking file behind.

    Raises:
        ReportIOError: If the file cannot be created or written.
    """
    path = Path(path)
    data = encode(records)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
        raise ReportIOError(f"{path}: cannot write report: {e}") from e

    logger.debug(f"Wrote report {path} ({len(data)} bytes)")
    return path


def read_report(path: Union[str, Path]) -> Report:
    """Read and decode the report stored at *path*.

    Raises:
        ReportIOError: If the file cannot be read.
        CodecError: If its contents do not decode.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ReportIOError(f"{path}: cannot read report: {e}") from e

    try:
        records = decode(data)
    except CodecError as e:
        raise CodecError(f"{path}: {e}") from e

    logger.debug(f"Read report {path}: {len(records)} records")
    return Report(records=tuple(records), source=str(path))
