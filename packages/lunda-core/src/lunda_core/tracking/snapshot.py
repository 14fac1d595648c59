"""Loading and saving the tracking snapshot through a document store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from lunda_core.storage.base import DocumentStore
from lunda_core.storage.models import DocumentNotFound
from lunda_core.tracking.models import Snapshot, SnapshotFormatError

logger = logging.getLogger(__name__)

SNAPSHOT_COMMIT_MESSAGE = "chore(lunda): update branch tracking data"


@dataclass
class LoadedSnapshot:
    """What was found at the tracking path.

    ``version`` is set whenever a document exists, even one that failed to
    parse, so the next save can overwrite it.
    """

    snapshot: Snapshot | None
    version: str | None = None
    error: str | None = None


def parse_snapshot(data: bytes | str) -> Snapshot:
    """Parse a tracking document; raises SnapshotFormatError if unusable."""
    try:
        return Snapshot.model_validate_json(data)
    except ValidationError as e:
        raise SnapshotFormatError(f"Invalid tracking document: {e}") from e


def dump_snapshot(snapshot: Snapshot) -> bytes:
    """Serialize for persistence, refusing expired or unsorted records."""
    for record in snapshot.records:
        if record.remaining_days <= 0:
            raise ValueError(
                f"Refusing to persist expired record {record.name!r} "
                f"(remaining_days={record.remaining_days})"
            )
    if not snapshot.is_sorted():
        raise ValueError("Refusing to persist an unsorted snapshot")
    payload = snapshot.model_dump(mode="json", by_alias=True)
    return (json.dumps(payload, indent=2) + "\n").encode("utf-8")


async def load_snapshot(store: DocumentStore, path: str) -> LoadedSnapshot:
    result = await store.read(path)
    if isinstance(result, DocumentNotFound):
        logger.info("No tracking data found at %s", path)
        return LoadedSnapshot(snapshot=None)
    try:
        snapshot = parse_snapshot(result.content)
    except SnapshotFormatError as e:
        logger.warning("Ignoring unreadable tracking data at %s: %s", path, e)
        return LoadedSnapshot(snapshot=None, version=result.version, error=str(e))
    return LoadedSnapshot(snapshot=snapshot, version=result.version)


async def save_snapshot(
    store: DocumentStore,
    path: str,
    snapshot: Snapshot,
    expected_version: str | None,
) -> str:
    content = dump_snapshot(snapshot)
    version = await store.write(
        path,
        content,
        expected_version=expected_version,
        message=SNAPSHOT_COMMIT_MESSAGE,
    )
    logger.info("Tracking data saved (%d branches)", len(snapshot.records))
    return version
