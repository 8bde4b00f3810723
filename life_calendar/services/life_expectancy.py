"""Pure domain logic for life expectancy statistics.

Only date arithmetic, no database or I/O. Statistics are recomputed from
the current date on every call, never stored.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

WEEKS_PER_YEAR = 52


@dataclass(frozen=True)
class LifeStats:
    weeks_lived: int
    weeks_left: int
    expectancy_years: int

    @property
    def expected_lifespan_weeks(self) -> int:
        return self.expectancy_years * WEEKS_PER_YEAR


def calculate_weeks_lived(
    birth_date: date, reference_date: Optional[date] = None
) -> int:
    """Count whole weeks between birth_date and reference_date.

    Args:
        birth_date: The user's date of birth.
        reference_date: Date to calculate from (defaults to today).

    Returns:
        Elapsed days divided by 7, truncated toward zero. A birth date in
        the future yields a negative count.

    Raises:
        TypeError: If birth_date is None.
    """
    if birth_date is None:
        raise TypeError("birth_date cannot be None")

    if reference_date is None:
        reference_date = date.today()

    days = (reference_date - birth_date).days
    if days < 0:
        return -(-days // 7)
    return days // 7


def compute_life_stats(
    birth_date: date,
    expectancy_years: int,
    reference_date: Optional[date] = None,
) -> LifeStats:
    """Compute weeks lived and weeks left for an expected lifespan.

    weeks_left is expectancy_years * 52 - weeks_lived and is not clamped:
    a negative value means the expected lifespan has already been passed.
    """
    weeks_lived = calculate_weeks_lived(birth_date, reference_date)
    weeks_left = expectancy_years * WEEKS_PER_YEAR - weeks_lived
    return LifeStats(
        weeks_lived=weeks_lived,
        weeks_left=weeks_left,
        expectancy_years=expectancy_years,
    )
