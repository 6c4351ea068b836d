"""Fact Store Loader: companyfacts documents → per-entity fact index.

Two sources, same document shape:
  - RemoteFactStore: data.sec.gov companyfacts API, one request per entity
  - BulkFactStore:   local extraction of companyfacts.zip, one file per CIK

A missing document (remote 404 / no local file) is "no data" and yields
None; transport failures raise FactsFetchError and malformed documents
raise FactsParseError.

Loaded documents are flattened with pandas into a fact table (one row per
fact), filtered to the concepts the metric registry asks for and to
accepted forms, and classified by period length.  The table is then
grouped into a FactIndex: an explicit per-entity lookup object that is
passed by reference through the pipeline.
"""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path

import pandas as pd

from sec_bankfacts.errors import BulkArchiveError, FactsFetchError, FactsParseError
from sec_bankfacts.models import ConceptSeries, RawFact
from sec_bankfacts.periods import classify_periods
from sec_bankfacts.sec_client import SECClient, pad_cik
from sec_bankfacts.xbrl_mappings import ACCEPTED_FORMS, extracted_concepts

log = logging.getLogger(__name__)

FACT_COLUMNS = [
    "namespace", "concept", "unit", "value", "start", "end",
    "filed", "form", "accn", "fy", "fp",
]

BULK_ARCHIVE_NAME = "companyfacts.zip"
BULK_EXTRACT_DIR = "companyfacts"


# ═══════════════════════════════════════════════════════════════════════════
#  Loaders
# ═══════════════════════════════════════════════════════════════════════════

class RemoteFactStore:
    """Fetch companyfacts per entity from the SEC API."""

    method = "api"

    def __init__(self, client: SECClient):
        self.client = client

    def load(self, cik: str) -> dict | None:
        return self.client.get_company_facts(cik)


class BulkFactStore:
    """Read companyfacts per entity from an extracted bulk archive."""

    method = "bulk"

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, cik: str) -> Path:
        return self.root / f"CIK{pad_cik(cik)}.json"

    def load(self, cik: str) -> dict | None:
        path = self.path_for(cik)
        if not path.exists():
            log.debug("No bulk companyfacts file for CIK %s", pad_cik(cik))
            return None
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except json.JSONDecodeError as exc:
            raise FactsParseError(pad_cik(cik), f"invalid JSON in {path.name}: {exc}") from exc
        except OSError as exc:
            raise FactsFetchError(pad_cik(cik), f"cannot read {path}: {exc}") from exc


def prepare_bulk_store(
    cache_dir: Path,
    *,
    client: SECClient | None = None,
    skip_download: bool = False,
) -> BulkFactStore:
    """Make sure an extracted bulk archive exists under ``cache_dir``.

    With ``skip_download`` an existing extraction (or an existing zip, which
    is then extracted) must already be present; otherwise BulkArchiveError.
    Without it the archive is downloaded fresh and re-extracted.
    """
    cache_dir = Path(cache_dir)
    archive = cache_dir / BULK_ARCHIVE_NAME
    extract_dir = cache_dir / BULK_EXTRACT_DIR

    if skip_download:
        if extract_dir.is_dir() and any(extract_dir.glob("CIK*.json")):
            log.info("Using existing bulk data in %s", extract_dir)
            return BulkFactStore(extract_dir)
        if not archive.exists():
            raise BulkArchiveError(
                f"No bulk data in {cache_dir}; run once without --skip-download first"
            )
    else:
        if client is None:
            raise BulkArchiveError("A SEC client is required to download the bulk archive")
        client.download_bulk_archive(archive)

    _extract_archive(archive, extract_dir)
    return BulkFactStore(extract_dir)


def _extract_archive(archive: Path, extract_dir: Path) -> None:
    log.info("Extracting %s → %s", archive, extract_dir)
    extract_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(extract_dir)
    except (zipfile.BadZipFile, OSError) as exc:
        raise BulkArchiveError(f"Failed to extract {archive}: {exc}") from exc
    log.info("Extraction complete")


# ═══════════════════════════════════════════════════════════════════════════
#  Flattening
# ═══════════════════════════════════════════════════════════════════════════

def facts_dataframe(document: dict, cik: str) -> pd.DataFrame:
    """Flatten a companyfacts document into a fact table.

    Each row is one fact (one concept, one unit, one period, one value).
    Columns: namespace, concept, unit, value, start, end, filed, form,
    accn, fy, fp, period_length.  Only concepts named in the metric
    registry and facts from accepted forms are kept; facts without an end
    date or a numeric value are dropped.
    """
    if not isinstance(document, dict) or not isinstance(document.get("facts"), dict):
        raise FactsParseError(cik, "document has no 'facts' object")

    wanted = extracted_concepts()
    rows: list[dict] = []
    for namespace, concepts in document["facts"].items():
        names = wanted.get(namespace)
        if not names:
            continue
        if not isinstance(concepts, dict):
            raise FactsParseError(cik, f"namespace {namespace!r} is not an object")
        for concept_name in sorted(names.intersection(concepts)):
            units = concepts[concept_name].get("units", {}) if isinstance(concepts[concept_name], dict) else None
            if not isinstance(units, dict):
                raise FactsParseError(cik, f"{namespace}:{concept_name} has no 'units' object")
            for unit_name, unit_facts in units.items():
                if not isinstance(unit_facts, list):
                    raise FactsParseError(cik, f"{namespace}:{concept_name} [{unit_name}] is not a list")
                for fact in unit_facts:
                    if fact.get("form") not in ACCEPTED_FORMS:
                        continue
                    rows.append({
                        "namespace": namespace,
                        "concept": concept_name,
                        "unit": unit_name,
                        "value": fact.get("val"),
                        "start": fact.get("start"),
                        "end": fact.get("end"),
                        "filed": fact.get("filed"),
                        "form": fact.get("form"),
                        "accn": fact.get("accn"),
                        "fy": fact.get("fy"),
                        "fp": fact.get("fp"),
                    })

    df = pd.DataFrame(rows, columns=FACT_COLUMNS)
    if df.empty:
        df["period_length"] = pd.Series(dtype="int64")
        return df

    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    for col in ("start", "end", "filed"):
        df[col] = pd.to_datetime(df[col], errors="coerce")
    df = df.dropna(subset=["end", "value"]).reset_index(drop=True)

    df["period_length"] = classify_periods(df)
    return df.sort_values(["end", "filed"], ascending=[False, False], na_position="last")


# ═══════════════════════════════════════════════════════════════════════════
#  Fact index
# ═══════════════════════════════════════════════════════════════════════════

def _to_date(value):
    return None if pd.isna(value) else value.date()


def _row_to_fact(row) -> RawFact:
    return RawFact(
        namespace=row.namespace,
        concept=row.concept,
        value=float(row.value),
        unit=row.unit,
        end=row.end.date(),
        start=_to_date(row.start),
        form=row.form,
        fiscal_year=None if pd.isna(row.fy) else int(row.fy),
        fiscal_period=None if pd.isna(row.fp) else str(row.fp),
        filed=_to_date(row.filed),
        accession=None if pd.isna(row.accn) else str(row.accn),
        period_length=int(row.period_length),
    )


class FactIndex:
    """(namespace, concept, unit) → ConceptSeries for one entity.

    Built once per entity and handed to the resolvers explicitly.
    """

    def __init__(self, cik: str, series: dict[tuple[str, str, str], ConceptSeries],
                 entity_name: str | None = None):
        self.cik = cik
        self.entity_name = entity_name
        self._series = series

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, cik: str, entity_name: str | None = None) -> FactIndex:
        series: dict[tuple[str, str, str], ConceptSeries] = {}
        if not df.empty:
            # df is already ordered end desc, filed desc; groupby keeps row order
            for (namespace, concept, unit), group in df.groupby(["namespace", "concept", "unit"], sort=False):
                series[(namespace, concept, unit)] = ConceptSeries(
                    namespace=namespace,
                    concept=concept,
                    unit=unit,
                    facts=[_row_to_fact(row) for row in group.itertuples(index=False)],
                )
        return cls(cik, series, entity_name)

    @classmethod
    def from_document(cls, document: dict, cik: str) -> FactIndex:
        df = facts_dataframe(document, cik)
        return cls.from_dataframe(df, cik, document.get("entityName"))

    def get(self, namespace: str, concept: str, unit: str) -> ConceptSeries | None:
        return self._series.get((namespace, concept, unit))

    def __len__(self) -> int:
        return len(self._series)

    def __bool__(self) -> bool:
        return bool(self._series)

    def __repr__(self) -> str:
        return f"FactIndex(cik={self.cik!r}, series={len(self._series)})"
