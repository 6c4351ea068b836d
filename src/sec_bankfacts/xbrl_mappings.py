"""XBRL concept → logical bank metric mappings.

Each logical metric maps to an ordered list of acceptable XBRL tags
(aliases).  Filers tag economically identical facts under different
names, so the resolver walks the list and uses the FIRST alias that has
data for the entity; aliases are never merged.

Adding a new alias is a one-line change to the relevant list; the
resolution logic in resolver.py does not need to change.

Two metric kinds:
  - BALANCE: point-in-time (instant) facts, e.g. total assets
  - FLOW: duration facts assembled into a TTM figure, e.g. net income
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple


# Only annual and quarterly reports feed the pipeline; 8-K, S-1, 10-K/A …
# are ignored.
ACCEPTED_FORMS: frozenset[str] = frozenset({"10-K", "10-Q"})
ANNUAL_FORM = "10-K"
QUARTERLY_FORM = "10-Q"


class MetricKind(str, Enum):
    BALANCE = "balance"
    FLOW = "flow"


# ═══════════════════════════════════════════════════════════════════════════
#  Concept entry
# ═══════════════════════════════════════════════════════════════════════════

class ConceptEntry(NamedTuple):
    xbrl_concept: str            # tag name (without namespace prefix)
    display_name: str            # human label
    namespace: str = "us-gaap"
    unit: str = "USD"


class MetricDefinition(NamedTuple):
    name: str
    kind: MetricKind
    concepts: list[ConceptEntry]


# ═══════════════════════════════════════════════════════════════════════════
#  BALANCE SHEET: Assets
# ═══════════════════════════════════════════════════════════════════════════

TOTAL_ASSETS: list[ConceptEntry] = [
    ConceptEntry("Assets", "Total Assets"),
]

CASH_AND_EQUIVALENTS: list[ConceptEntry] = [
    ConceptEntry("CashAndCashEquivalentsAtCarryingValue", "Cash and Cash Equivalents"),
    ConceptEntry("CashAndDueFromBanks", "Cash and Due from Banks"),
]

LOANS: list[ConceptEntry] = [
    ConceptEntry("LoansAndLeasesReceivableNetReportedAmount", "Loans and Leases, Net"),
    ConceptEntry("LoansAndLeasesReceivableNetOfDeferredIncome", "Loans and Leases, Net of Deferred Income"),
    ConceptEntry("FinancingReceivableExcludingAccruedInterestAfterAllowanceForCreditLoss",
                 "Financing Receivable after Allowance"),
    ConceptEntry("NotesReceivableNet", "Notes Receivable, Net"),
]

GOODWILL: list[ConceptEntry] = [
    ConceptEntry("Goodwill", "Goodwill"),
]

INTANGIBLES: list[ConceptEntry] = [
    ConceptEntry("IntangibleAssetsNetExcludingGoodwill", "Intangible Assets excl. Goodwill"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  BALANCE SHEET: Liabilities & Equity
# ═══════════════════════════════════════════════════════════════════════════

TOTAL_LIABILITIES: list[ConceptEntry] = [
    ConceptEntry("Liabilities", "Total Liabilities"),
]

DEPOSITS: list[ConceptEntry] = [
    ConceptEntry("Deposits", "Total Deposits"),
    ConceptEntry("DepositsDomestic", "Domestic Deposits"),
]

TOTAL_EQUITY: list[ConceptEntry] = [
    ConceptEntry("StockholdersEquity", "Stockholders' Equity"),
    ConceptEntry("StockholdersEquityIncludingPortionAttributableToNoncontrollingInterest",
                 "Equity incl. Noncontrolling Interest"),
]

PREFERRED_STOCK: list[ConceptEntry] = [
    ConceptEntry("PreferredStockValue", "Preferred Stock"),
    ConceptEntry("PreferredStockValueOutstanding", "Preferred Stock Outstanding"),
]

# Cover-page (DEI) share count has better coverage than the balance sheet tag
SHARES_OUTSTANDING: list[ConceptEntry] = [
    ConceptEntry("EntityCommonStockSharesOutstanding", "Shares Outstanding (cover page)",
                 namespace="dei", unit="shares"),
    ConceptEntry("CommonStockSharesOutstanding", "Common Shares Outstanding", unit="shares"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  INCOME STATEMENT
# ═══════════════════════════════════════════════════════════════════════════

INTEREST_INCOME: list[ConceptEntry] = [
    ConceptEntry("InterestIncome", "Interest Income"),
    ConceptEntry("InterestAndDividendIncomeOperating", "Interest & Dividend Income"),
]

INTEREST_EXPENSE: list[ConceptEntry] = [
    ConceptEntry("InterestExpense", "Interest Expense"),
]

NET_INTEREST_INCOME: list[ConceptEntry] = [
    ConceptEntry("InterestIncomeExpenseNet", "Net Interest Income"),
    ConceptEntry("NetInterestIncome", "Net Interest Income (alt)"),
]

NONINTEREST_INCOME: list[ConceptEntry] = [
    ConceptEntry("NoninterestIncome", "Noninterest Income"),
]

NONINTEREST_EXPENSE: list[ConceptEntry] = [
    ConceptEntry("NoninterestExpense", "Noninterest Expense"),
    ConceptEntry("OperatingExpenses", "Operating Expenses"),
]

PROVISION_FOR_CREDIT_LOSSES: list[ConceptEntry] = [
    ConceptEntry("ProvisionForLoanLeaseAndOtherLosses", "Provision for Loan, Lease and Other Losses"),
    ConceptEntry("ProvisionForLoanAndLeaseLosses", "Provision for Loan and Lease Losses"),
    ConceptEntry("ProvisionForCreditLosses", "Provision for Credit Losses"),
]

PRE_TAX_INCOME: list[ConceptEntry] = [
    ConceptEntry("IncomeLossFromContinuingOperationsBeforeIncomeTaxesExtraordinaryItemsNoncontrollingInterest",
                 "Pre-Tax Income"),
    ConceptEntry("IncomeLossFromContinuingOperationsBeforeIncomeTaxes", "Pre-Tax Income (alt)"),
]

NET_INCOME: list[ConceptEntry] = [
    ConceptEntry("NetIncomeLoss", "Net Income"),
    ConceptEntry("ProfitLoss", "Profit/Loss"),
    ConceptEntry("NetIncomeLossAvailableToCommonStockholdersBasic", "Net Income to Common"),
]

NET_INCOME_TO_COMMON: list[ConceptEntry] = [
    ConceptEntry("NetIncomeLossAvailableToCommonStockholdersBasic", "Net Income to Common"),
]

PREFERRED_DIVIDENDS: list[ConceptEntry] = [
    ConceptEntry("PreferredStockDividendsIncomeStatementImpact", "Preferred Dividends"),
    ConceptEntry("DividendsPreferredStock", "Preferred Dividends (alt)"),
]

EPS: list[ConceptEntry] = [
    ConceptEntry("EarningsPerShareBasic", "EPS (Basic)", unit="USD/shares"),
    ConceptEntry("EarningsPerShareDiluted", "EPS (Diluted)", unit="USD/shares"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  CASH FLOW & DIVIDENDS
# ═══════════════════════════════════════════════════════════════════════════

OPERATING_CASH_FLOW: list[ConceptEntry] = [
    ConceptEntry("NetCashProvidedByUsedInOperatingActivities", "Operating Cash Flow"),
]

DIVIDENDS_PER_SHARE: list[ConceptEntry] = [
    ConceptEntry("CommonStockDividendsPerShareDeclared", "Dividends per Share Declared", unit="USD/shares"),
    ConceptEntry("CommonStockDividendsPerShareCashPaid", "Dividends per Share Paid", unit="USD/shares"),
]


# ═══════════════════════════════════════════════════════════════════════════
#  Metric registry
# ═══════════════════════════════════════════════════════════════════════════

METRICS: dict[str, MetricDefinition] = {
    m.name: m for m in [
        MetricDefinition("total_assets", MetricKind.BALANCE, TOTAL_ASSETS),
        MetricDefinition("cash_and_equivalents", MetricKind.BALANCE, CASH_AND_EQUIVALENTS),
        MetricDefinition("loans", MetricKind.BALANCE, LOANS),
        MetricDefinition("goodwill", MetricKind.BALANCE, GOODWILL),
        MetricDefinition("intangibles", MetricKind.BALANCE, INTANGIBLES),
        MetricDefinition("total_liabilities", MetricKind.BALANCE, TOTAL_LIABILITIES),
        MetricDefinition("total_deposits", MetricKind.BALANCE, DEPOSITS),
        MetricDefinition("total_equity", MetricKind.BALANCE, TOTAL_EQUITY),
        MetricDefinition("preferred_stock", MetricKind.BALANCE, PREFERRED_STOCK),
        MetricDefinition("shares_outstanding", MetricKind.BALANCE, SHARES_OUTSTANDING),
        MetricDefinition("interest_income", MetricKind.FLOW, INTEREST_INCOME),
        MetricDefinition("interest_expense", MetricKind.FLOW, INTEREST_EXPENSE),
        MetricDefinition("net_interest_income", MetricKind.FLOW, NET_INTEREST_INCOME),
        MetricDefinition("noninterest_income", MetricKind.FLOW, NONINTEREST_INCOME),
        MetricDefinition("noninterest_expense", MetricKind.FLOW, NONINTEREST_EXPENSE),
        MetricDefinition("provision_for_credit_losses", MetricKind.FLOW, PROVISION_FOR_CREDIT_LOSSES),
        MetricDefinition("pre_tax_income", MetricKind.FLOW, PRE_TAX_INCOME),
        MetricDefinition("net_income", MetricKind.FLOW, NET_INCOME),
        MetricDefinition("net_income_to_common", MetricKind.FLOW, NET_INCOME_TO_COMMON),
        MetricDefinition("preferred_dividends", MetricKind.FLOW, PREFERRED_DIVIDENDS),
        MetricDefinition("eps", MetricKind.FLOW, EPS),
        MetricDefinition("operating_cash_flow", MetricKind.FLOW, OPERATING_CASH_FLOW),
        MetricDefinition("dividends_per_share", MetricKind.FLOW, DIVIDENDS_PER_SHARE),
    ]
}


def _balance_concepts() -> frozenset[str]:
    names: set[str] = set()
    for metric in METRICS.values():
        if metric.kind is MetricKind.BALANCE:
            names.update(entry.xbrl_concept for entry in metric.concepts)
    # Not a metric input, but still an instant on the cover page / balance sheet
    names.update({"LiabilitiesAndStockholdersEquity", "EntityPublicFloat"})
    return frozenset(names)


# Balance sheet concepts are point-in-time, never duration: the period
# classifier forces them to length 0 even if a filer attached a start date.
BALANCE_CONCEPTS: frozenset[str] = _balance_concepts()


def extracted_concepts() -> dict[str, set[str]]:
    """namespace → concept names the loader needs to keep from a document."""
    wanted: dict[str, set[str]] = {}
    for metric in METRICS.values():
        for entry in metric.concepts:
            wanted.setdefault(entry.namespace, set()).add(entry.xbrl_concept)
    return wanted
