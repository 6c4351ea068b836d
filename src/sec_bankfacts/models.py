"""Pydantic models for facts, resolved figures and output records."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Raw facts
# ---------------------------------------------------------------------------

class RawFact(BaseModel):
    """One XBRL fact from a companyfacts document. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    namespace: str
    concept: str
    value: float
    unit: str
    end: date
    start: date | None = None
    form: str
    fiscal_year: int | None = None
    fiscal_period: str | None = None
    filed: date | None = None
    accession: str | None = None
    period_length: int = 0       # 0 = point-in-time, 1..4 = quarters covered


class ConceptSeries(BaseModel):
    """All accepted facts for one concept/unit pair, newest end date first."""
    namespace: str
    concept: str
    unit: str
    facts: list[RawFact] = []

    def __len__(self) -> int:
        return len(self.facts)


# ---------------------------------------------------------------------------
# Resolved figures
# ---------------------------------------------------------------------------

class ResolvedPointInTime(BaseModel):
    value: float
    end_date: date
    form: str
    fact: RawFact


class ResolvedAverage(BaseModel):
    average: float
    ending: float
    ending_date: date
    beginning_date: date | None = None
    method: str                  # "single-period" | "2-point-avg" … "5-point-avg"
    period_count: int
    facts: list[RawFact] = []


class TTMContribution(BaseModel):
    fact: RawFact
    derived: bool = False        # True for a Q4 synthesized from annual − Q1..Q3


class ResolvedTTM(BaseModel):
    value: float
    anchor_date: date
    method: str                  # "sum-4Q" | "annual" | "annual-fallback"
    contributions: list[TTMContribution] = []

    @property
    def has_derived_quarter(self) -> bool:
        return any(c.derived for c in self.contributions)


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------

class IdentityRow(BaseModel):
    """One row of the identity list produced by the discovery collaborator.

    Accepts both the camelCase keys of bank-list.json and snake_case.
    """
    model_config = ConfigDict(populate_by_name=True)

    cik: str
    name: str | None = Field(default=None, validation_alias=AliasChoices("companyName", "name"))
    ticker: str | None = None
    sic: str | None = None
    sic_description: str | None = Field(
        default=None, validation_alias=AliasChoices("sicDescription", "sic_description"),
    )
    exchange: str | None = None
    otc_tier: str | None = Field(default=None, validation_alias=AliasChoices("otcTier", "otc_tier"))

    @field_validator("cik", mode="before")
    @classmethod
    def pad_cik(cls, v: str | int) -> str:
        return str(v).strip().zfill(10)

    @field_validator("sic", mode="before")
    @classmethod
    def sic_to_str(cls, v: str | int | None) -> str | None:
        return None if v is None else str(v)


class EntityIdentity(BaseModel):
    cik: str
    ticker: str | None = None
    tickers: list[str] = []
    name: str | None = None
    exchange: str | None = None
    otc_tier: str | None = None
    sic: str | None = None
    sic_description: str | None = None


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------

class EntityRecord(BaseModel):
    """One output row per surviving entity.  None means not computable."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Identity
    cik: str
    ticker: str | None = None
    bank_name: str | None = None
    exchange: str | None = None
    otc_tier: str | None = None
    sic: str | None = None
    sic_description: str | None = None

    # Balances (latest point-in-time)
    total_assets: float | None = None
    cash_and_equivalents: float | None = None
    loans: float | None = None
    total_liabilities: float | None = None
    total_deposits: float | None = None
    total_equity: float | None = None
    preferred_stock: float = 0.0
    shares_outstanding: float | None = None
    goodwill: float = 0.0
    intangibles: float = 0.0

    # Averages used by return ratios
    avg_assets: float | None = None
    avg_equity: float | None = None
    return_ratio_avg_method: str | None = None

    # TTM flows
    ttm_interest_income: float | None = None
    ttm_interest_expense: float | None = None
    ttm_net_interest_income: float | None = None
    ttm_noninterest_income: float | None = None
    ttm_noninterest_expense: float | None = None
    ttm_provision_for_credit_losses: float | None = None
    ttm_pre_tax_income: float | None = None
    ttm_net_income: float | None = None
    ttm_net_income_to_common: float | None = None
    ttm_eps: float | None = None
    ttm_operating_cash_flow: float | None = None
    ttm_dividend_per_share: float | None = None
    ttm_method: str | None = None
    dividend_method: str | None = None

    # Derived ratios
    common_equity: float | None = None
    tangible_common_equity: float | None = None
    tangible_assets: float | None = None
    bvps: float | None = None
    tbvps: float | None = None
    roe: float | None = None
    roaa: float | None = None
    rotce: float | None = None
    total_revenue: float | None = None
    efficiency_ratio: float | None = None
    deposits_to_assets: float | None = None
    equity_to_assets: float | None = None
    loans_to_assets: float | None = None
    loans_to_deposits: float | None = None
    tce_to_ta: float | None = None
    graham_num: float | None = None
    dividend_payout_ratio: float | None = None

    # Quality & freshness
    data_quality_issues: list[str] | None = None
    has_data_quality_issues: bool = False
    data_date: date | None = None
    is_stale: bool = False
    updated_at: datetime | None = None


class ResolvedFigure(BaseModel):
    """Audit entry: which alias and which facts produced one resolved figure."""
    concept: str | None = None
    method: str | None = None
    value: float | None = None
    facts: list[RawFact] = []
    derived: list[bool] = []


class EntityAudit(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ticker: str | None = None
    company_name: str | None = None
    balance_sheet: dict[str, ResolvedFigure | None] = {}
    averages: dict[str, ResolvedFigure | None] = {}
    flows: dict[str, ResolvedFigure | None] = {}


class RunSummary(BaseModel):
    identities_loaded: int = 0
    entities: int = 0
    processed: int = 0
    succeeded: int = 0           # records computed
    emitted: int = 0             # records written (succeeded − stale_excluded)
    no_data: int = 0
    quality_flagged: int = 0
    stale_excluded: int = 0
    errored: int = 0
    cancelled: int = 0

    @property
    def ok(self) -> bool:
        """True if the run produced at least one usable record."""
        return self.emitted > 0
