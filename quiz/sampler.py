"""
Position Sampler - Weighted Selection of Puzzle Positions

Draws one (game, ply) pair from the corpus weight index, restricted to
entries whose ply parity gives the requested side to move.

Selection is a linear threshold scan over the filtered entries, in the
order they appear in the index, so a fixed random draw always yields the
same entry.
"""

from __future__ import annotations

import bisect
import logging
import random
from typing import List, Optional, Sequence, Tuple

from .errors import EmptyPartitionError
from .quiz_types import WeightEntry

logger = logging.getLogger(__name__)


def filter_by_side(
    weight_index: Sequence[WeightEntry],
    require_white_to_move: bool,
) -> List[WeightEntry]:
    """Entries whose ply parity matches the requested side, in index order."""
    if require_white_to_move:
        return [e for e in weight_index if e.white_to_move]
    return [e for e in weight_index if not e.white_to_move]


def _checked_partition(
    weight_index: Sequence[WeightEntry],
    require_white_to_move: bool,
) -> Tuple[List[WeightEntry], float]:
    filtered = filter_by_side(weight_index, require_white_to_move)
    if not filtered:
        raise EmptyPartitionError(require_white_to_move)

    total = sum(e.weight for e in filtered)
    if not total > 0:
        raise EmptyPartitionError(
            require_white_to_move,
            f"Total weight for the requested side is not positive ({total})",
        )
    return filtered, total


class PositionSampler:
    """
    Weighted, parity-constrained sampler.

    Args:
        rng: Random source. Inject a seeded ``random.Random`` (or any object
            with a ``random()`` method) for reproducible draws.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def sample(
        self,
        weight_index: Sequence[WeightEntry],
        require_white_to_move: bool,
    ) -> Tuple[int, int]:
        """
        Pick one entry with probability ``weight / total`` within its partition.

        Args:
            weight_index: Full weight index of the corpus
            require_white_to_move: True for even plies, False for odd plies

        Returns:
            (game_index, ply)

        Raises:
            EmptyPartitionError: no entries, or no positive weight, for that side
        """
        filtered, total = _checked_partition(weight_index, require_white_to_move)

        threshold = self._rng.random() * total
        chosen = filtered[-1]  # only reached when rounding exhausts the scan
        for entry in filtered:
            threshold -= entry.weight
            if threshold < 0:
                chosen = entry
                break

        logger.debug("Selected: game=%d, ply=%d, weight=%s", chosen.game, chosen.ply, chosen.weight)
        return chosen.game, chosen.ply


# =============================================================================
# CUMULATIVE-WEIGHT VARIANT
# =============================================================================


def build_cumulative(
    weight_index: Sequence[WeightEntry],
    require_white_to_move: bool,
) -> Tuple[List[WeightEntry], List[float]]:
    """
    Precompute running totals for the requested side.

    Returns:
        (filtered entries, cumulative weights); the last cumulative value is
        the partition's total weight.
    """
    filtered, _ = _checked_partition(weight_index, require_white_to_move)
    cumulative: List[float] = []
    running = 0.0
    for entry in filtered:
        running += entry.weight
        cumulative.append(running)
    return filtered, cumulative


def sample_bisect(
    filtered: Sequence[WeightEntry],
    cumulative: Sequence[float],
    draw: float,
) -> Tuple[int, int]:
    """
    Binary-search counterpart of :meth:`PositionSampler.sample`.

    ``draw`` is a uniform value in [0, 1); the same draw selects the same
    entry as the linear scan.
    """
    if not filtered:
        raise ValueError("Cannot sample from an empty partition")
    threshold = draw * cumulative[-1]
    idx = bisect.bisect_right(cumulative, threshold)
    entry = filtered[min(idx, len(filtered) - 1)]
    return entry.game, entry.ply
