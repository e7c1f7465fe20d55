# appointly/services/scheduling/distribution.py
"""
Default-employee selection for merged slots.

Advisory only: the chosen employee pre-selects a UI default. The booking
write path re-checks conflicts for whichever employee is finally submitted.
"""
import random
from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

from appointly.services.scheduling.slot_generator import AvailableEmployee


class EmployeeDistributionStrategy(ABC):
    """Picks which of several eligible employees a merged slot defaults to"""

    @abstractmethod
    def choose(
            self,
            candidates: Sequence[AvailableEmployee],
            appointment_counts: Mapping[str, int],
    ) -> Optional[AvailableEmployee]:
        raise NotImplementedError


class FairDistributionStrategy(EmployeeDistributionStrategy):
    """Least appointments on the date wins; ties are broken uniformly at random"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def choose(self, candidates, appointment_counts):
        if not candidates:
            return None

        lowest = min(appointment_counts.get(c.id, 0) for c in candidates)
        least_busy = [c for c in candidates if appointment_counts.get(c.id, 0) == lowest]

        if len(least_busy) == 1:
            return least_busy[0]
        return self.rng.choice(least_busy)
