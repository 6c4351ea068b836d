"""Dataset I/O: identity list in, entity records and audit trail out.

Output files are replaced atomically: each is written to a temp file in
the target directory and renamed over the old one, so readers only ever
see the previous run's file or the new one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from sec_bankfacts.models import EntityAudit, EntityRecord, IdentityRow

log = logging.getLogger(__name__)

RECORDS_FILE = "banks.json"
AUDIT_FILE = "sec-raw-data.json"
AUDIT_SOURCE = "SEC EDGAR XBRL companyfacts"


def load_identity_list(path: Path) -> list[IdentityRow]:
    """Read the identity list: ``{"banks": [...]}`` or a bare array.

    Rows that fail validation (e.g. no CIK) are skipped with a warning.
    """
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)

    entries = raw.get("banks", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected a list of identities")

    rows: list[IdentityRow] = []
    for i, entry in enumerate(entries):
        try:
            rows.append(IdentityRow.model_validate(entry))
        except ValidationError as exc:
            log.warning("Skipping identity row %d in %s: %s", i, path.name, exc.errors()[0]["msg"])
    log.info("Loaded %d identity rows from %s", len(rows), path)
    return rows


def _atomic_write_json(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
            fh.write("\n")
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def write_records(records: list[EntityRecord], output_dir: Path) -> Path:
    path = Path(output_dir) / RECORDS_FILE
    _atomic_write_json(path, [r.model_dump(mode="json", by_alias=True) for r in records])
    log.info("Wrote %d records to %s", len(records), path)
    return path


def write_audit(
    audits: dict[str, EntityAudit],
    output_dir: Path,
    *,
    method: str,
    url: str,
    generated_at: datetime,
) -> Path:
    """Write the audit trail: which facts and aliases fed each figure."""
    path = Path(output_dir) / AUDIT_FILE
    payload = {
        "metadata": {
            "source": AUDIT_SOURCE,
            "url": url,
            "method": method,
            "generated_at": generated_at.isoformat(),
            "entity_count": len(audits),
        },
        "entities": {
            cik: audit.model_dump(mode="json", by_alias=True) for cik, audit in audits.items()
        },
    }
    _atomic_write_json(path, payload)
    log.info("Wrote audit trail for %d entities to %s", len(audits), path)
    return path
