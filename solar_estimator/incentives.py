"""
Solar incentive catalog and matching by region code.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

REBATE = 'rebate'
TAX_CREDIT = 'tax_credit'


@dataclass(frozen=True)
class IncentiveRecord:
    """A single incentive program available in a region."""
    region_code: str
    kind: str  # REBATE or TAX_CREDIT
    amount: float  # Dollars for a rebate, fraction of cost for a tax credit
    description: str

    def __post_init__(self):
        if self.kind not in (REBATE, TAX_CREDIT):
            raise ValueError(f"Unknown incentive kind: {self.kind!r}")


@dataclass(frozen=True)
class AppliedIncentive:
    """An incentive resolved to a dollar amount for one installation."""
    record: IncentiveRecord
    applied_amount: float

    @property
    def description(self) -> str:
        return self.record.description


class IncentiveCatalog:
    """
    Read-only collection of incentive records.

    Records keep the order they were given in; matching returns them in
    that order.
    """

    def __init__(self, records: Iterable[IncentiveRecord]):
        self._records = tuple(records)

    def __iter__(self):
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    @property
    def records(self) -> Tuple[IncentiveRecord, ...]:
        return self._records

    def match(self, region_code: str) -> List[IncentiveRecord]:
        return match_incentives(self, region_code)


# Simplified programs - actual eligibility rules are more involved
DEFAULT_CATALOG = IncentiveCatalog([
    IncentiveRecord('CA', REBATE, 1000, 'California Solar Initiative Rebate'),
    IncentiveRecord('CA', TAX_CREDIT, 0.30, 'Federal Solar Investment Tax Credit'),
    IncentiveRecord('NY', REBATE, 5000, 'NY-Sun Incentive Program'),
    IncentiveRecord('NY', TAX_CREDIT, 0.25, 'New York State Solar Equipment Tax Credit'),
])


def match_incentives(catalog: Iterable[IncentiveRecord], region_code: str) -> List[IncentiveRecord]:
    """
    Find the incentives offered in a region.

    Args:
        catalog: Incentive records to search
        region_code: Region code, compared exactly (case-sensitive)

    Returns:
        Matching records in catalog order; empty if none match
    """
    return [record for record in catalog if record.region_code == region_code]


def apply_incentives(
    records: Iterable[IncentiveRecord],
    installation_cost: float
) -> Tuple[List[AppliedIncentive], float]:
    """
    Resolve incentives to dollar amounts against an installation cost.

    Args:
        records: Incentive records, usually from match_incentives
        installation_cost: Gross installation cost in dollars

    Returns:
        (applied incentives in input order, total dollars)
    """
    applied = []
    total = 0.0

    for record in records:
        if record.kind == TAX_CREDIT:
            amount = installation_cost * record.amount
        else:
            amount = record.amount
        total += amount
        applied.append(AppliedIncentive(record=record, applied_amount=amount))

    return applied, total


def derive_region_code(address: str) -> str:
    """
    Take the region code from a free-text address.

    Uses the last comma-separated part of the address, so
    "1 Main St, Springfield, CA" gives "CA". Addresses that don't end in a
    region code give whatever their last part is.
    """
    return address.split(',')[-1].strip()
