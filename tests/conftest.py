"""Shared companyfacts fixtures.

One synthetic community bank, "FIRST EXAMPLE BANCORP" (CIK 1234567):
  - total assets 2.5B and equity 250M at 2025-03-31
  - equity history for a 5-point average (210M → 250M)
  - four quarterly net income facts summing to 28M
  - 25M shares on the cover page
"""

import pytest

CIK = "0001234567"


def _instant(end, val, form="10-Q", fy=None, fp="Q1"):
    return {
        "end": end, "val": val, "accn": f"0001234567-{end[2:4]}-000001",
        "fy": fy or int(end[:4]), "fp": fp, "form": form, "filed": end,
    }


def _duration(start, end, val, form="10-Q", fp="Q1"):
    return dict(_instant(end, val, form=form, fp=fp), start=start)


def make_bank_document():
    return {
        "cik": 1234567,
        "entityName": "FIRST EXAMPLE BANCORP",
        "facts": {
            "dei": {
                "EntityCommonStockSharesOutstanding": {
                    "label": "Entity Common Stock, Shares Outstanding",
                    "units": {"shares": [_instant("2025-03-31", 25_000_000)]},
                },
            },
            "us-gaap": {
                "Assets": {
                    "label": "Assets",
                    "units": {"USD": [
                        _instant("2025-03-31", 2_500_000_000),
                        # 8-K press release figure must be ignored
                        _instant("2025-04-30", 9_999_999_999, form="8-K"),
                    ]},
                },
                "StockholdersEquity": {
                    "label": "Stockholders' Equity",
                    "units": {"USD": [
                        _instant("2025-03-31", 250_000_000),
                        _instant("2024-12-31", 240_000_000, form="10-K", fp="FY"),
                        _instant("2024-09-30", 230_000_000),
                        _instant("2024-06-30", 220_000_000),
                        _instant("2024-03-31", 210_000_000),
                    ]},
                },
                "Deposits": {
                    "label": "Deposits",
                    "units": {"USD": [_instant("2025-03-31", 2_000_000_000)]},
                },
                "NetIncomeLoss": {
                    "label": "Net Income (Loss)",
                    "units": {"USD": [
                        _duration("2025-01-01", "2025-03-31", 7_500_000),
                        _duration("2024-10-01", "2024-12-31", 7_000_000, form="10-K", fp="FY"),
                        _duration("2024-07-01", "2024-09-30", 7_000_000, fp="Q3"),
                        _duration("2024-04-01", "2024-06-30", 6_500_000, fp="Q2"),
                        _duration("2024-01-01", "2024-12-31", 27_000_000, form="10-K", fp="FY"),
                    ]},
                },
                "SomeUnrelatedConcept": {
                    "label": "Unrelated",
                    "units": {"USD": [_instant("2025-03-31", 1)]},
                },
            },
        },
    }


@pytest.fixture
def bank_document():
    return make_bank_document()


@pytest.fixture
def bank_document_factory():
    return make_bank_document
