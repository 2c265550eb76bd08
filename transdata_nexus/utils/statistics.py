"""
Statistical Reducers

Small numpy-backed helpers shared by the analytics services:
- Central tendency and dispersion (population standard deviation)
- Volatility / coefficient of variation
- Z-score outliers and price spike detection
- Volume drop detection over monthly counts
- Concentration measures (share of top party, Herfindahl-Hirschman index)
- Growth between windows

All helpers are total: empty inputs and zero denominators yield neutral
values instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class Severity:
    """Anomaly severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# BASIC MOMENTS
# =============================================================================

def _array(values: Iterable[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def mean(values: Iterable[float]) -> float:
    arr = _array(values)
    return float(arr.mean()) if arr.size else 0.0


def median(values: Iterable[float]) -> float:
    arr = _array(values)
    return float(np.median(arr)) if arr.size else 0.0


def population_std(values: Iterable[float]) -> float:
    """Standard deviation with ddof=0 (0 for empty input)"""
    arr = _array(values)
    return float(arr.std()) if arr.size else 0.0


def coefficient_of_variation(values: Iterable[float]) -> float:
    """sigma / mu as a ratio; 0 when the mean is zero"""
    arr = _array(values)
    if arr.size == 0:
        return 0.0
    avg = arr.mean()
    if avg == 0:
        return 0.0
    return float(arr.std() / avg)


def volatility(values: Iterable[float]) -> float:
    """
    Coefficient of variation as a percentage

    Returns 0 when fewer than two samples are available or the mean is zero.
    """
    arr = _array(values)
    if arr.size < 2:
        return 0.0
    return coefficient_of_variation(arr) * 100


# =============================================================================
# OUTLIERS AND ANOMALIES
# =============================================================================

def zscore_outliers(values: Sequence[float], threshold: float = 2.0) -> List[int]:
    """
    Indexes whose |z-score| exceeds the threshold

    Args:
        values: Numeric series
        threshold: Absolute z-score cut-off

    Returns:
        List of indexes (empty when the series has no spread)
    """
    arr = _array(values)
    if arr.size == 0:
        return []
    std = arr.std()
    if std == 0:
        return []
    z = np.abs((arr - arr.mean()) / std)
    return [int(i) for i in np.nonzero(z > threshold)[0]]


@dataclass
class PriceSpike:
    """A maximum price above mean + 2 sigma"""
    max_price: float
    average_price: float
    std_dev: float
    severity: str


def detect_price_spike(prices: Sequence[float], threshold: float = 2.0,
                       critical_threshold: float = 3.0) -> Optional[PriceSpike]:
    """
    Flag the maximum price when it exceeds mean + threshold * sigma

    Returns:
        PriceSpike (severity critical above mean + critical_threshold * sigma,
        otherwise high), or None
    """
    arr = _array(prices)
    if arr.size == 0:
        return None

    avg = float(arr.mean())
    std = float(arr.std())
    max_price = float(arr.max())

    if max_price > avg + threshold * std:
        severity = Severity.CRITICAL if max_price > avg + critical_threshold * std else Severity.HIGH
        return PriceSpike(max_price=max_price, average_price=avg, std_dev=std, severity=severity)
    return None


@dataclass
class VolumeDrop:
    """Recent three-month average volume below the prior three months"""
    recent_average: float
    previous_average: float
    severity: str


def detect_volume_drop(monthly_counts: Sequence[float], ratio: float = 0.7,
                       severe_ratio: float = 0.5) -> Optional[VolumeDrop]:
    """
    Compare the last three monthly counts with the three before them

    Needs more than three months. With fewer than six months the earlier
    window is whatever precedes the last three, still averaged over three.

    Returns:
        VolumeDrop (severity high below severe_ratio of the previous average,
        otherwise medium), or None
    """
    counts = list(monthly_counts)
    if len(counts) <= 3:
        return None

    recent = sum(counts[-3:]) / 3
    previous = sum(counts[-6:-3]) / 3

    if recent < previous * ratio:
        severity = Severity.HIGH if recent < previous * severe_ratio else Severity.MEDIUM
        return VolumeDrop(recent_average=recent, previous_average=previous, severity=severity)
    return None


# =============================================================================
# CONCENTRATION
# =============================================================================

def top_share(counts: Dict[str, float]) -> Tuple[Optional[str], float]:
    """
    Largest party and its share of the total

    Returns:
        Tuple of (name, share ratio); (None, 0.0) when empty
    """
    if not counts:
        return None, 0.0
    total = sum(counts.values())
    if total <= 0:
        return None, 0.0
    name = max(counts, key=counts.get)
    return name, counts[name] / total


def concentration_index(counts: Dict[str, float]) -> float:
    """Sum of squared shares as ratios (0-1)"""
    total = sum(counts.values())
    if total <= 0:
        return 0.0
    return float(sum((value / total) ** 2 for value in counts.values()))


def hhi(shares_percent: Iterable[float]) -> float:
    """Herfindahl-Hirschman index from percentage shares: sum((s/100)^2) * 10000"""
    return float(sum((share / 100) ** 2 for share in shares_percent) * 10000)


def hhi_from_values(values: Iterable[float]) -> float:
    """HHI (0-10000) from raw values: sum of squared percentage shares"""
    values = list(values)
    total = sum(values)
    if total <= 0:
        return 0.0
    return float(sum((value / total * 100) ** 2 for value in values))


def classify_hhi(index: float, moderate: float = 1500.0, high: float = 2500.0) -> Tuple[str, str]:
    """
    Bucket an HHI value

    Returns:
        Tuple of (interpretation, risk level)
    """
    if index < moderate:
        return 'Low concentration', 'low'
    if index < high:
        return 'Moderate concentration', 'medium'
    return 'High concentration', 'high'


# =============================================================================
# GROWTH
# =============================================================================

def percent_change(old: float, new: float) -> float:
    """(new - old) / old * 100, 0 when old is zero"""
    if old == 0:
        return 0.0
    return (new - old) / old * 100


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def window_growth(series: Sequence[float], window: int = 3) -> Optional[float]:
    """
    Growth of the mean of the last window against the window before it

    Returns:
        Percentage change, or None when fewer than `window` points exist.
        A missing or zero previous window gives 0.
    """
    values = list(series)
    if len(values) < window:
        return None
    recent = values[-window:]
    previous = values[-2 * window:-window]
    if not previous:
        return 0.0
    return percent_change(sum(previous) / len(previous), sum(recent) / len(recent))


def half_split_trend(values: Sequence[float], stable_threshold: float = 5.0) -> Tuple[str, float]:
    """
    Compare the mean of the first half of a series with the second half

    Returns:
        Tuple of (direction, strength): direction is increasing, decreasing
        or stable; strength is the absolute percentage change
    """
    values = list(values)
    half = len(values) // 2
    first = values[:half]
    second = values[half:]
    if not first or not second:
        return 'stable', 0.0

    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)
    if first_avg == 0:
        return 'stable', 0.0

    change = (second_avg - first_avg) / first_avg * 100
    if abs(change) < stable_threshold:
        return 'stable', abs(change)
    return ('increasing' if change > 0 else 'decreasing'), abs(change)
