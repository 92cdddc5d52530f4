"""
Tier Table - Ordered volume pricing tiers loaded from configuration.

Tiers are plain data referenced by index. The table enforces that ranges are
contiguous, ascending and closed by exactly one unbounded tier, so the
calculators can rely on a first-match scan.
"""
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator, Optional

import pandas as pd
import structlog

from .errors import TierTableError

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ('upper_bound', 'unit_price_minor_units', 'label')


@dataclass(frozen=True)
class PricingTier:
    """A contiguous range of asset counts sharing one unit price."""
    upper_bound: Optional[int]  # None = unbounded
    unit_price_minor_units: int
    label: str = ""
    lower_bound: int = 1

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None

    @property
    def range_label(self) -> str:
        """Display range, e.g. "1-25", "26-50" or "101+"."""
        if self.upper_bound is None:
            return f"{self.lower_bound}+"
        return f"{self.lower_bound}-{self.upper_bound}"

    def contains(self, asset_count: int) -> bool:
        if asset_count < self.lower_bound:
            return False
        return self.upper_bound is None or asset_count <= self.upper_bound


class TierTable:
    """
    Validated, immutable sequence of pricing tiers.

    Lower bounds are derived on construction: tier 0 starts at 1 and every
    following tier starts one above its predecessor's upper bound.
    """

    def __init__(self, tiers):
        tiers = list(tiers)
        if not tiers:
            raise TierTableError("Tier table must contain at least one tier")

        validated = []
        lower = 1
        for index, tier in enumerate(tiers):
            price = tier.unit_price_minor_units
            if isinstance(price, bool) or not isinstance(price, int) or price < 0:
                raise TierTableError(
                    f"Tier {index} unit price must be a non-negative integer, got {price!r}"
                )

            is_last = index == len(tiers) - 1
            if tier.upper_bound is None:
                if not is_last:
                    raise TierTableError(f"Only the last tier may be unbounded (tier {index} is)")
            else:
                bound = tier.upper_bound
                if isinstance(bound, bool) or not isinstance(bound, int):
                    raise TierTableError(f"Tier {index} upper bound must be an integer, got {bound!r}")
                if bound < lower:
                    raise TierTableError(
                        f"Tier {index} upper bound {bound} must be at least {lower}"
                    )
                if is_last:
                    raise TierTableError("The last tier must be unbounded")

            validated.append(replace(tier, lower_bound=lower))
            if tier.upper_bound is not None:
                lower = tier.upper_bound + 1

        self._tiers = tuple(validated)

    @classmethod
    def default(cls) -> 'TierTable':
        """The standard Relay volume pricing tiers (pence per asset per month)."""
        return cls([
            PricingTier(upper_bound=25, unit_price_minor_units=499, label="Small teams"),
            PricingTier(upper_bound=50, unit_price_minor_units=449, label="Growing teams"),
            PricingTier(upper_bound=100, unit_price_minor_units=399, label="Medium teams"),
            PricingTier(upper_bound=None, unit_price_minor_units=349, label="Large teams"),
        ])

    def __len__(self) -> int:
        return len(self._tiers)

    def __getitem__(self, index: int) -> PricingTier:
        return self._tiers[index]

    def __iter__(self) -> Iterator[PricingTier]:
        return iter(self._tiers)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TierTable):
            return NotImplemented
        return self._tiers == other._tiers

    def __hash__(self) -> int:
        return hash(self._tiers)

    def __repr__(self) -> str:
        return f"TierTable({list(self._tiers)!r})"

    def find_index(self, asset_count: int) -> int:
        """Index of the first tier whose upper bound covers the count."""
        for index, tier in enumerate(self._tiers):
            if tier.upper_bound is None or asset_count <= tier.upper_bound:
                return index
        # The last tier is unbounded, so the scan always returns above
        raise TierTableError("Tier table has no unbounded tier")

    def next_tier(self, index: int) -> Optional[PricingTier]:
        if index + 1 < len(self._tiers):
            return self._tiers[index + 1]
        return None

    def to_records(self) -> list[dict]:
        """Plain dict rows for listings."""
        return [
            {
                "tier_index": index,
                "tier_number": index + 1,
                "label": tier.label,
                "range_label": tier.range_label,
                "lower_bound": tier.lower_bound,
                "upper_bound": tier.upper_bound,
                "unit_price_minor_units": tier.unit_price_minor_units,
            }
            for index, tier in enumerate(self._tiers)
        ]


def _as_int(value, column: str, row: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise TierTableError(f"Row {row}: {column} must be an integer, got {value!r}")
    if not number.is_integer():
        raise TierTableError(f"Row {row}: {column} must be an integer, got {value!r}")
    return int(number)


def _is_active(value) -> bool:
    if pd.isna(value):
        return True
    return str(value).strip().lower() in ('true', '1', 'yes')


def load_tier_table(csv_path: Optional[Path], required: bool = False) -> TierTable:
    """
    Load the tier table from a CSV file.

    Columns: upper_bound (blank = unbounded), unit_price_minor_units, label
    and an optional active flag. Falls back to the default table when the
    file does not exist, unless required is set (an explicitly configured
    path); a malformed file raises TierTableError.
    """
    if csv_path is None or not Path(csv_path).exists():
        if required:
            raise TierTableError(f"Configured tier table {csv_path} does not exist")
        logger.warning("tier_table_default_used", path=str(csv_path) if csv_path else None)
        return TierTable.default()

    try:
        df = pd.read_csv(csv_path, dtype={'label': str})
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise TierTableError(f"Could not read tier table {csv_path}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise TierTableError(f"Tier table {csv_path} is missing columns: {', '.join(missing)}")

    tiers = []
    for row, record in enumerate(df.to_dict(orient='records'), start=1):
        if 'active' in record and not _is_active(record['active']):
            continue
        bound = record['upper_bound']
        label = record['label']
        tiers.append(PricingTier(
            upper_bound=None if pd.isna(bound) else _as_int(bound, 'upper_bound', row),
            unit_price_minor_units=_as_int(record['unit_price_minor_units'], 'unit_price_minor_units', row),
            label="" if pd.isna(label) else str(label).strip(),
        ))

    # Unbounded tier sorts last
    tiers.sort(key=lambda t: (t.upper_bound is None, t.upper_bound or 0))
    table = TierTable(tiers)
    logger.info("tier_table_loaded", path=str(csv_path), tiers=len(table))
    return table
