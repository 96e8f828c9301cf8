# /flasharb/core/persistence.py
# Durable snapshots of ExecutorState (admin context + accounting ledger).
# Local JSON files by default, a GCS bucket when GCP_PROJECT_ID is set.
import json
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os
from google.api_core.exceptions import GoogleAPICallError
from google.cloud import storage

from flasharb.core.config import settings
from flasharb.core.logger import SNAPSHOTS_TAKEN, get_logger
from flasharb.core.state import ExecutorState

log = get_logger(__name__)

SNAPSHOT_DIR = Path(settings.SESSION_DIR) / "snapshots"
GCS_BUCKET = f"{settings.GCP_PROJECT_ID}-flasharb-state" if settings.GCP_PROJECT_ID else None

_storage_client = None


def get_gcs_client():
    global _storage_client
    if _storage_client is None and GCS_BUCKET:
        _storage_client = storage.Client(project=settings.GCP_PROJECT_ID)
    return _storage_client


def _last_file() -> Path:
    return Path(SNAPSHOT_DIR) / "last_snapshot.ts"


async def save_snapshot(state: ExecutorState, name: str = "executor") -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    filename = f"{name}_{ts}.json"
    payload = state.model_dump_json(indent=2)
    local_dir = Path(SNAPSHOT_DIR)

    if GCS_BUCKET:
        blob = get_gcs_client().bucket(GCS_BUCKET).blob(f"snapshots/{filename}")
        try:
            await aiofiles.os.wrap(blob.upload_from_string)(payload, content_type="application/json")
        except GoogleAPICallError as e:
            log.error("SNAPSHOT_GCS_FAILED", error=str(e))
            raise
        path = f"gs://{GCS_BUCKET}/snapshots/{filename}"
        log.info("SNAPSHOT_SAVED_GCS", path=path)
    else:
        local_dir.mkdir(parents=True, exist_ok=True)
        fp = local_dir / filename
        async with aiofiles.open(fp, "w") as f:
            await f.write(payload)
        path = str(fp)
        log.info("SNAPSHOT_SAVED_LOCAL", path=path)

    local_dir.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(_last_file(), "w") as f:
        await f.write(path)
    SNAPSHOTS_TAKEN.inc()
    return path


async def load_snapshot(path: str) -> ExecutorState:
    if path.startswith("gs://"):
        bucket, _, blob_name = path[5:].partition("/")
        blob = get_gcs_client().bucket(bucket).blob(blob_name)
        data = await aiofiles.os.wrap(blob.download_as_text)()
    else:
        async with aiofiles.open(path, "r") as f:
            data = await f.read()
    state = ExecutorState.model_validate(json.loads(data))
    log.info("SNAPSHOT_LOADED", path=path, total_arbitrages=state.ledger.total_arbitrages)
    return state


async def get_last_snapshot_path() -> str | None:
    try:
        async with aiofiles.open(_last_file(), "r") as f:
            return (await f.read()).strip() or None
    except FileNotFoundError:
        return None


async def load_latest_snapshot() -> ExecutorState | None:
    path = await get_last_snapshot_path()
    if path is None:
        return None
    return await load_snapshot(path)
