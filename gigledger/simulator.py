"""Weekly schedule simulator for GigLedger

Searches block-length combinations to find the week of blocks with the
highest projected net earnings under an 8-hour daily cap, a 40-hour weekly
cap and fuel costs.

Pipeline
--------
1. Historical averages: blocks of the simulated platform are assigned to
   the nearest block-length bucket (within 15 minutes); per bucket we keep
   the count, average payout and average payout per hour.
2. Bucket rates: a bucket with history uses its average payout when it meets
   the configured minimum ("historical"); a bucket without history uses the
   minimum itself ("acceptable"). Buckets with a non-positive minimum, or
   whose history falls short of it, are not offered.
3. Per-day schedule: every multiset of usable block lengths fitting the
   daily cap is enumerated and the highest-earning one is picked
   (ties: fewer minutes, then fewer blocks, then enumeration order).
4. Weekly cap: blocks are removed lowest earnings first (ties: lowest $/hr,
   then latest day) until the week fits, then slack is refilled greedily
   with the best $/hr blocks that still fit.
5. Fuel: fill-ups = ceil(blocks / blocks_before_gas). The lowest-value
   block is dropped while doing so raises net earnings.

Typical usage
-------------
>>> from gigledger.config import SimulatorConfig
>>> results = run_simulation([], SimulatorConfig())
>>> results.weekly_projection.net_earnings
644.0
>>> [len(day.blocks) for day in results.daily_schedule]
[2, 2, 1, 1, 1, 1, 1]
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import combinations_with_replacement
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import SimulatorConfig
from .constants import (
    BLOCK_BUCKET_TOLERANCE_MINUTES,
    BLOCK_LENGTHS,
    DAY_NAMES,
    MAX_DAILY_MINUTES,
    MAX_WEEKLY_MINUTES,
    MINUTES_PER_HOUR,
)
from .income import IncomeEntry
from .utils import coerce_number

__all__ = [
    "HistoricalAverage",
    "BucketRate",
    "ScheduleBlock",
    "DailySchedule",
    "WeeklyProjection",
    "BlockCombination",
    "SimulationResults",
    "ScheduleSimulator",
    "nearest_block_length",
    "calculate_gas_cost",
    "run_simulation",
]

NO_VALID_BLOCKS_REASONING = "No valid blocks found. Try lowering your acceptable rates."


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HistoricalAverage:
    block_length: int
    avg_rate: float
    avg_per_hour: float
    count: int


@dataclass(frozen=True)
class BucketRate:
    """Payout assumed for one block length and where it came from."""
    block_length: int
    rate: float
    source: str  # "historical" | "acceptable"

    @property
    def per_hour(self) -> float:
        return self.rate / (self.block_length / MINUTES_PER_HOUR)


@dataclass(frozen=True)
class ScheduleBlock:
    block_length: int
    estimated_earnings: float
    source: str

    @property
    def hours(self) -> float:
        return self.block_length / MINUTES_PER_HOUR

    @property
    def per_hour(self) -> float:
        return self.estimated_earnings / self.hours


@dataclass(frozen=True)
class DailySchedule:
    day_index: int
    day_name: str
    blocks: Tuple[ScheduleBlock, ...]
    total_minutes: int
    total_hours: float
    remaining_hours: float

    @property
    def earnings(self) -> float:
        return float(sum(b.estimated_earnings for b in self.blocks))


@dataclass(frozen=True)
class WeeklyProjection:
    gross_earnings: float = 0.0
    total_gas_cost: float = 0.0
    net_earnings: float = 0.0
    total_hours: float = 0.0
    total_blocks: int = 0
    gas_fillups_needed: int = 0


@dataclass(frozen=True)
class BlockCombination:
    blocks: Tuple[ScheduleBlock, ...]
    weekly_projection: WeeklyProjection
    daily_schedule: Tuple[DailySchedule, ...]
    reasoning: str


@dataclass(frozen=True)
class SimulationResults:
    """
    Output of ``run_simulation``.

    ``optimal`` is None when no usable bucket exists or no schedule earns a
    positive net; the projection is then all zeros, every day is empty and
    ``reasoning`` tells the user to lower their acceptable rates.
    """
    config: SimulatorConfig
    historical_averages: Dict[int, HistoricalAverage]
    bucket_rates: Dict[int, BucketRate]
    optimal: Optional[BlockCombination]
    weekly_projection: WeeklyProjection
    daily_schedule: Tuple[DailySchedule, ...]
    reasoning: str

    @property
    def is_empty(self) -> bool:
        return self.optimal is None

    def to_frame(self) -> pd.DataFrame:
        """Per-day breakdown indexed by day name."""
        rows = [
            {
                "day": d.day_name,
                "blocks": ", ".join(f"{b.hours:g}h" for b in d.blocks),
                "minutes": d.total_minutes,
                "hours": d.total_hours,
                "earnings": d.earnings,
                "remaining_hours": d.remaining_hours,
            }
            for d in self.daily_schedule
        ]
        return pd.DataFrame(
            rows, columns=["day", "blocks", "minutes", "hours", "earnings", "remaining_hours"]
        ).set_index("day")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def nearest_block_length(
    minutes: float,
    tolerance: int = BLOCK_BUCKET_TOLERANCE_MINUTES,
) -> Optional[int]:
    """
    Bucket a recorded block length.

    Returns the closest entry of ``BLOCK_LENGTHS`` within *tolerance*
    minutes, or None. Equidistant lengths resolve to the shorter bucket.

    Examples
    --------
    >>> nearest_block_length(232), nearest_block_length(300)
    (240, None)
    """
    value = coerce_number(minutes, fallback=float("nan"))
    if not np.isfinite(value):
        return None
    lengths = np.asarray(BLOCK_LENGTHS)
    distances = np.abs(lengths - value)
    idx = int(np.argmin(distances))
    if distances[idx] > tolerance:
        return None
    return int(lengths[idx])


def calculate_gas_cost(total_blocks: int, config: SimulatorConfig) -> Tuple[float, int]:
    """(cost, fill-ups) for *total_blocks* blocks."""
    if total_blocks <= 0:
        return 0.0, 0
    fillups = math.ceil(total_blocks / config.blocks_before_gas)
    return fillups * config.fill_up_cost, fillups


def _removal_key(day_index: int, block: ScheduleBlock) -> Tuple[float, float, int]:
    # lowest earnings, then lowest $/hr, then latest day
    return (block.estimated_earnings, block.per_hour, -day_index)


def _empty_day(day_index: int, daily_minutes: int) -> DailySchedule:
    return DailySchedule(
        day_index=day_index,
        day_name=DAY_NAMES[day_index],
        blocks=(),
        total_minutes=0,
        total_hours=0.0,
        remaining_hours=daily_minutes / MINUTES_PER_HOUR,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ScheduleSimulator:
    """Runs the simulation pipeline for one config.

    Parameters
    ----------
    config : SimulatorConfig
    daily_minutes, weekly_minutes : int
        Hour caps in minutes (8h / 40h by default).
    """

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        daily_minutes: int = MAX_DAILY_MINUTES,
        weekly_minutes: int = MAX_WEEKLY_MINUTES,
    ):
        if daily_minutes <= 0 or weekly_minutes <= 0:
            raise ValueError("daily_minutes and weekly_minutes must be positive.")
        self.config = config or SimulatorConfig()
        self.daily_minutes = daily_minutes
        self.weekly_minutes = weekly_minutes

    # -------------------- Step 1: history --------------------
    def historical_averages(self, entries: Iterable[IncomeEntry]) -> Dict[int, HistoricalAverage]:
        """Count, average payout and average $/hr per bucket (zeros when empty)."""
        rows = []
        for entry in entries:
            if entry.platform != self.config.platform or entry.block_length is None:
                continue
            bucket = nearest_block_length(entry.block_length)
            if bucket is not None:
                rows.append({"bucket": bucket, "amount": entry.safe_amount})
        frame = pd.DataFrame(rows, columns=["bucket", "amount"]).astype({"bucket": int, "amount": float})
        stats = frame.groupby("bucket")["amount"].agg(["count", "mean"])

        averages: Dict[int, HistoricalAverage] = {}
        for length in BLOCK_LENGTHS:
            if length in stats.index:
                count = int(stats.loc[length, "count"])
                avg = float(stats.loc[length, "mean"])
            else:
                count, avg = 0, 0.0
            averages[length] = HistoricalAverage(
                block_length=length,
                avg_rate=avg,
                avg_per_hour=avg / (length / MINUTES_PER_HOUR) if count else 0.0,
                count=count,
            )
        return averages

    # -------------------- Step 2: rates --------------------
    def bucket_rates(self, averages: Dict[int, HistoricalAverage]) -> Dict[int, BucketRate]:
        rates: Dict[int, BucketRate] = {}
        for length in BLOCK_LENGTHS:
            minimum = self.config.acceptable_rate(length)
            if minimum <= 0:
                continue
            history = averages.get(length)
            if history is not None and history.count > 0:
                if history.avg_rate >= minimum:
                    rates[length] = BucketRate(length, history.avg_rate, "historical")
            else:
                rates[length] = BucketRate(length, minimum, "acceptable")
        return rates

    # -------------------- Step 3: one day --------------------
    def best_day(self, rates: Dict[int, BucketRate]) -> Tuple[ScheduleBlock, ...]:
        """Highest-earning multiset of blocks fitting the daily cap."""
        lengths = sorted(rates)
        if not lengths:
            return ()
        max_blocks = self.daily_minutes // lengths[0]

        best: Tuple[int, ...] = ()
        best_key: Tuple[float, int, int] = (0.0, 0, 0)
        for k in range(1, max_blocks + 1):
            for combo in combinations_with_replacement(lengths, k):
                minutes = sum(combo)
                if minutes > self.daily_minutes:
                    continue
                earnings = sum(rates[length].rate for length in combo)
                key = (earnings, -minutes, -k)
                if not best or key > best_key:
                    best, best_key = combo, key
        return tuple(
            ScheduleBlock(length, rates[length].rate, rates[length].source) for length in best
        )

    # -------------------- Step 4: week --------------------
    def fit_week(
        self,
        days: List[List[ScheduleBlock]],
        rates: Dict[int, BucketRate],
    ) -> List[List[ScheduleBlock]]:
        """Trim to the weekly cap, then refill slack with the best $/hr blocks."""
        def total() -> int:
            return sum(b.block_length for day in days for b in day)

        while total() > self.weekly_minutes:
            day_index, pos = min(
                ((d, i) for d, day in enumerate(days) for i in range(len(day))),
                key=lambda di: _removal_key(di[0], days[di[0]][di[1]]),
            )
            days[day_index].pop(pos)

        candidates = sorted(
            rates.values(), key=lambda r: (r.per_hour, r.rate), reverse=True
        )
        added = True
        while added:
            added = False
            for rate in candidates:
                if total() + rate.block_length > self.weekly_minutes:
                    continue
                for day in days:
                    used = sum(b.block_length for b in day)
                    if used + rate.block_length <= self.daily_minutes:
                        day.append(ScheduleBlock(rate.block_length, rate.rate, rate.source))
                        added = True
                        break
                if added:
                    break
        return days

    # -------------------- Step 5: fuel --------------------
    def projection(self, blocks: Sequence[ScheduleBlock]) -> WeeklyProjection:
        gross = float(sum(b.estimated_earnings for b in blocks))
        gas, fillups = calculate_gas_cost(len(blocks), self.config)
        minutes = sum(b.block_length for b in blocks)
        return WeeklyProjection(
            gross_earnings=gross,
            total_gas_cost=float(gas),
            net_earnings=gross - gas,
            total_hours=minutes / MINUTES_PER_HOUR,
            total_blocks=len(blocks),
            gas_fillups_needed=fillups,
        )

    def trim_for_fuel(self, days: List[List[ScheduleBlock]]) -> List[List[ScheduleBlock]]:
        """Drop the lowest-value block while doing so raises net earnings."""
        while True:
            placed = [(d, i) for d, day in enumerate(days) for i in range(len(day))]
            if not placed:
                return days
            current = self.projection([b for day in days for b in day]).net_earnings
            day_index, pos = min(placed, key=lambda di: _removal_key(di[0], days[di[0]][di[1]]))
            remaining = [
                b for d, day in enumerate(days) for i, b in enumerate(day)
                if (d, i) != (day_index, pos)
            ]
            if self.projection(remaining).net_earnings <= current:
                return days
            days[day_index].pop(pos)

    # -------------------- Output --------------------
    def daily_schedule(self, days: List[List[ScheduleBlock]]) -> Tuple[DailySchedule, ...]:
        schedule = []
        for index, blocks in enumerate(days):
            ordered = tuple(sorted(blocks, key=lambda b: b.block_length))
            minutes = sum(b.block_length for b in ordered)
            schedule.append(
                DailySchedule(
                    day_index=index,
                    day_name=DAY_NAMES[index],
                    blocks=ordered,
                    total_minutes=minutes,
                    total_hours=minutes / MINUTES_PER_HOUR,
                    remaining_hours=(self.daily_minutes - minutes) / MINUTES_PER_HOUR,
                )
            )
        return tuple(schedule)

    def reasoning(self, blocks: Sequence[ScheduleBlock], projection: WeeklyProjection) -> str:
        """Human-readable explanation of the chosen mix."""
        if not blocks:
            return NO_VALID_BLOCKS_REASONING
        parts = []
        for length in BLOCK_LENGTHS:
            count = sum(1 for b in blocks if b.block_length == length)
            if count:
                plural = "s" if count > 1 else ""
                parts.append(f"{count}× {length / MINUTES_PER_HOUR:g}hr block{plural}")
        per_hour = projection.net_earnings / projection.total_hours if projection.total_hours else 0.0
        return (
            f"{' + '.join(parts)} = {projection.total_hours:g} hours. "
            f"Maximizes $/hour (${per_hour:.2f}/hr net) while staying under the "
            f"{self.weekly_minutes / MINUTES_PER_HOUR:g}-hour weekly limit and "
            f"{self.daily_minutes / MINUTES_PER_HOUR:g}-hour daily limit."
        )

    def empty_results(
        self,
        averages: Dict[int, HistoricalAverage],
        rates: Dict[int, BucketRate],
    ) -> SimulationResults:
        return SimulationResults(
            config=self.config,
            historical_averages=averages,
            bucket_rates=rates,
            optimal=None,
            weekly_projection=WeeklyProjection(),
            daily_schedule=tuple(_empty_day(i, self.daily_minutes) for i in range(len(DAY_NAMES))),
            reasoning=NO_VALID_BLOCKS_REASONING,
        )

    def run(self, entries: Iterable[IncomeEntry]) -> SimulationResults:
        averages = self.historical_averages(entries)
        rates = self.bucket_rates(averages)
        if not rates:
            return self.empty_results(averages, rates)

        day_blocks = self.best_day(rates)
        days = [list(day_blocks) for _ in DAY_NAMES]
        days = self.fit_week(days, rates)
        days = self.trim_for_fuel(days)

        schedule = self.daily_schedule(days)
        blocks = tuple(b for day in schedule for b in day.blocks)
        projection = self.projection(blocks)
        if not blocks or projection.net_earnings <= 0:
            return self.empty_results(averages, rates)

        reasoning = self.reasoning(blocks, projection)
        return SimulationResults(
            config=self.config,
            historical_averages=averages,
            bucket_rates=rates,
            optimal=BlockCombination(
                blocks=blocks,
                weekly_projection=projection,
                daily_schedule=schedule,
                reasoning=reasoning,
            ),
            weekly_projection=projection,
            daily_schedule=schedule,
            reasoning=reasoning,
        )


def run_simulation(
    historical_entries: Iterable[IncomeEntry],
    config: Optional[SimulatorConfig] = None,
    *,
    daily_minutes: int = MAX_DAILY_MINUTES,
    weekly_minutes: int = MAX_WEEKLY_MINUTES,
) -> SimulationResults:
    """
    Best weekly schedule for *config* given the worker's history.

    Parameters
    ----------
    historical_entries : iterable of IncomeEntry
        Past entries; only the config's platform with a block length counts.
    config : SimulatorConfig, optional
        Defaults to 4 blocks per tank, $3.50/gal, 12 gal and the default
        minimum rates.
    daily_minutes, weekly_minutes : int
        Hour caps in minutes.

    Returns
    -------
    SimulationResults

    Examples
    --------
    >>> res = run_simulation([], SimulatorConfig(acceptable_rates={180: 0, 210: 0, 240: 0, 270: 0}))
    >>> res.optimal is None, res.reasoning
    (True, 'No valid blocks found. Try lowering your acceptable rates.')
    """
    simulator = ScheduleSimulator(config, daily_minutes=daily_minutes, weekly_minutes=weekly_minutes)
    return simulator.run(historical_entries)
