"""
Order block manager.

Creation (on a breakout):
- Scan the parsed highs/lows between the broken pivot's bar and the
  breakout bar, both inclusive.
- Bearish block: bar with the highest parsed high.
- Bullish block: bar with the lowest parsed low.
- First occurrence wins on ties. The selected bar's raw high/low become
  the block bounds.

Mitigation (every bar):
- Bearish block removed once the source (close, or high in high-low mode)
  exceeds block.high.
- Bullish block removed once the source (close, or low in high-low mode)
  falls below block.low.

Blocks have no TTL. Each resolution owns its own book; the active list
keeps insertion order and an (anchor bar, bias) pair is never reused.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

import numpy as np

from ..base import BarData
from ..types import Bias, MitigationSource, Resolution


@dataclass(frozen=True, slots=True)
class OrderBlock:
    """
    Supply (bearish) or demand (bullish) zone.

    Attributes:
        high: Raw high of the anchor bar.
        low: Raw low of the anchor bar.
        time: Time of the anchor bar.
        bias: BULLISH or BEARISH.
        bar_index: Anchor bar index.
        resolution: SWING or INTERNAL.
        created_index: Breakout bar that created the block.
        mitigated_index: Bar that removed the block (None while active).
    """

    high: float
    low: float
    time: Any
    bias: Bias
    bar_index: int
    resolution: Resolution
    created_index: int
    mitigated_index: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.mitigated_index is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "high": self.high,
            "low": self.low,
            "time": self.time,
            "bias": self.bias.label,
            "bar_index": self.bar_index,
            "resolution": self.resolution.value,
            "created_index": self.created_index,
            "mitigated_index": self.mitigated_index,
        }


def select_anchor_index(
    pivot_index: int,
    current_index: int,
    bias: Bias,
    parsed_highs: Sequence[float],
    parsed_lows: Sequence[float],
) -> int:
    """
    Index of the most extreme parsed bar in ``[pivot_index, current_index]``.

    np.argmax/np.argmin return the first occurrence on ties.
    """
    stop = current_index + 1
    if bias == Bias.BEARISH:
        window = np.asarray(parsed_highs[pivot_index:stop], dtype=np.float64)
        return pivot_index + int(np.argmax(window))
    window = np.asarray(parsed_lows[pivot_index:stop], dtype=np.float64)
    return pivot_index + int(np.argmin(window))


def is_mitigated(block: OrderBlock, bar: BarData, source: MitigationSource) -> bool:
    """True if ``bar`` re-crosses ``block``."""
    if block.bias == Bias.BEARISH:
        price = bar.close if source == MitigationSource.CLOSE else bar.high
        return price > block.high
    price = bar.close if source == MitigationSource.CLOSE else bar.low
    return price < block.low


class OrderBlockBook:
    """
    Active and mitigated order blocks of one resolution.

    Attributes:
        resolution: Owning resolution.
        active: Live blocks in creation order.
        mitigated: Removed blocks in removal order.
    """

    def __init__(self, resolution: Resolution) -> None:
        self.resolution = resolution
        self.active: list[OrderBlock] = []
        self.mitigated: list[OrderBlock] = []
        self._seen: set[tuple[int, Bias]] = set()

    def __len__(self) -> int:
        return len(self.active)

    def create(
        self,
        pivot_index: Optional[int],
        current_index: int,
        bias: Bias,
        highs: Sequence[float],
        lows: Sequence[float],
        parsed_highs: Sequence[float],
        parsed_lows: Sequence[float],
        times: Sequence[Any],
    ) -> Optional[OrderBlock]:
        """
        Create a block for a breakout of the pivot at ``pivot_index``.

        Returns:
            The new block, or None when the pivot is unset, not behind the
            current bar, or its anchor was already used for this bias.
        """
        if pivot_index is None or pivot_index < 0 or current_index <= pivot_index:
            return None

        anchor = select_anchor_index(pivot_index, current_index, bias, parsed_highs, parsed_lows)
        key = (anchor, bias)
        if key in self._seen:
            return None
        self._seen.add(key)

        block = OrderBlock(
            high=float(highs[anchor]),
            low=float(lows[anchor]),
            time=times[anchor],
            bias=bias,
            bar_index=anchor,
            resolution=self.resolution,
            created_index=current_index,
        )
        self.active.append(block)
        return block

    def mitigate(self, bar: BarData, source: MitigationSource) -> list[OrderBlock]:
        """
        Remove every active block the bar re-crosses.

        Returns:
            The blocks removed on this bar (with mitigated_index set).
        """
        if not self.active:
            return []

        still_active: list[OrderBlock] = []
        removed: list[OrderBlock] = []
        for block in self.active:
            if is_mitigated(block, bar, source):
                removed.append(replace(block, mitigated_index=bar.idx))
            else:
                still_active.append(block)

        if removed:
            self.active = still_active
            self.mitigated.extend(removed)
        return removed
