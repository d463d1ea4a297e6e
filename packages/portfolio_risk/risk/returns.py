"""
Return Construction Module

Pure functions for turning a position's raw price history into a
chronologically ordered series of simple periodic returns.
"""

from collections.abc import Mapping
from typing import Any, Iterable, List, Tuple

import numpy as np
import pandas as pd
import structlog

from ..models import PricePoint

logger = structlog.get_logger(__name__)


def _as_records(price_history: Iterable[Any]) -> List[Tuple[Any, float]]:
    """Normalise PricePoints, mappings and (date, price) pairs to tuples."""
    records = []
    for point in price_history:
        if isinstance(point, PricePoint):
            records.append((point.date, float(point.price)))
        elif isinstance(point, Mapping):
            records.append((point['date'], float(point['price'])))
        else:
            date, price = point
            records.append((date, float(price)))
    return records


def sort_price_history(price_history: Iterable[Any]) -> pd.DataFrame:
    """Build a date-sorted price frame from a price history.

    Args:
        price_history: Iterable of PricePoint, {'date', 'price'} mappings or
            (date, price) pairs, in any order

    Returns:
        DataFrame with columns: date (datetime64, UTC), price (float), sorted
        ascending by date. The sort is stable, so samples sharing a date
        keep their original relative order.
    """
    records = _as_records(price_history) if price_history is not None else []
    if not records:
        return pd.DataFrame({'date': pd.Series(dtype='datetime64[ns, UTC]'), 'price': pd.Series(dtype=float)})

    frame = pd.DataFrame(records, columns=['date', 'price'])
    # Naive samples are read as UTC so they order against offset-aware ones
    frame['date'] = pd.to_datetime(frame['date'], format='mixed', utc=True)

    return frame.sort_values('date', kind='stable').reset_index(drop=True)


def build_returns(price_history: Iterable[Any]) -> np.ndarray:
    """Compute simple returns between chronologically consecutive samples.

    return_t = (P_t - P_{t-1}) / P_{t-1}

    Intervals whose previous price is zero are skipped rather than divided
    through, so the result may be shorter than len(price_history) - 1.

    Args:
        price_history: Price samples in any order (see sort_price_history)

    Returns:
        1-D float array of returns. Empty when fewer than 2 samples are
        supplied; short input is not an error.
    """
    frame = sort_price_history(price_history)

    if len(frame) < 2:
        return np.empty(0, dtype=float)

    prices = frame['price'].to_numpy(dtype=float)
    prev_prices = prices[:-1]
    curr_prices = prices[1:]

    valid = prev_prices != 0
    skipped = int((~valid).sum())
    if skipped:
        logger.debug(
            "build_returns: skipped intervals with zero previous price",
            skipped=skipped,
            num_samples=len(prices)
        )

    returns = (curr_prices[valid] - prev_prices[valid]) / prev_prices[valid]

    logger.debug(
        "build_returns: returns computed",
        num_samples=len(prices),
        num_returns=len(returns)
    )

    return returns
