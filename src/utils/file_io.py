"""File I/O utilities for JSONL exports."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def write_jsonl(
    records: list[dict],
    output_path: Union[str, Path],
    commit_id: Optional[str] = None,
    append: bool = True,
) -> dict:
    """Write records to a JSONL file with metadata.

    Args:
        records: List of records to write
        output_path: Output file path
        commit_id: Optional identifier stamped on every line
        append: Append to an existing file instead of truncating it

    Returns:
        Metadata dict with file info
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    written_at = datetime.now(timezone.utc).isoformat()

    with open(output_path, "a" if append else "w", encoding="utf-8") as f:
        for record in records:
            enriched_record = {"_written_at": written_at, **record}
            if commit_id is not None:
                enriched_record["_commit_id"] = commit_id
            f.write(json.dumps(enriched_record, default=str) + "\n")

    metadata = {
        "file_path": str(output_path),
        "commit_id": commit_id,
        "written_at": written_at,
        "record_count": len(records),
        "file_size_bytes": output_path.stat().st_size,
    }

    logger.debug(
        f"Wrote {len(records)} records to {output_path}",
        extra=metadata
    )

    return metadata


def read_jsonl(file_path: Union[str, Path]) -> list[dict]:
    """Read records from a JSONL file.

    Args:
        file_path: Path to JSONL file

    Returns:
        List of parsed records
    """
    records = []

    with open(file_path, "r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                records.append(json.loads(line))

    logger.debug(f"Read {len(records)} records from {file_path}")
    return records
