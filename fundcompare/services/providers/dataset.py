# fundcompare/services/providers/dataset.py
"""
Local dataset loading for the in-memory providers.

A dataset is a JSON file of already-parsed series:

    {
      "instruments": {
        "120503": {
          "name": "Axis Bluechip Fund - Direct Growth",
          "prices": [{"date": "2024-01-01", "price": "52.31"}, ...]
        }
      },
      "benchmarks": {
        "nifty50": [{"date": "2024-01-01", "price": "21731.40"}, ...]
      }
    }

Rows may be in any order; they are sorted by date before registration.
Duplicate dates are rejected by validate_series.
"""

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from fundcompare.services.engine.types import PricePoint
from fundcompare.services.exceptions import UpstreamDataError
from fundcompare.services.providers.in_memory import (
    InMemoryBenchmarkProvider,
    InMemoryPriceProvider,
)

logger = logging.getLogger(__name__)


class PriceRow(BaseModel):
    """One observation in a dataset file."""

    date: date
    price: Decimal = Field(..., gt=0)


class InstrumentData(BaseModel):
    """Instrument entry in a dataset file."""

    name: str | None = None
    prices: list[PriceRow] = Field(default_factory=list)


class Dataset(BaseModel):
    """Top-level dataset file."""

    instruments: dict[str, InstrumentData] = Field(default_factory=dict)
    benchmarks: dict[str, list[PriceRow]] = Field(default_factory=dict)


def _to_points(rows: list[PriceRow]) -> list[PricePoint]:
    return [PricePoint(date=r.date, price=r.price) for r in sorted(rows, key=lambda r: r.date)]


def load_dataset(
        path: str | Path,
        prices: InMemoryPriceProvider,
        benchmarks: InMemoryBenchmarkProvider,
) -> Dataset:
    """
    Load a dataset file into the given providers.

    Args:
        path: JSON dataset path
        prices: Provider receiving instrument series
        benchmarks: Provider receiving benchmark series

    Returns:
        The parsed Dataset

    Raises:
        UpstreamDataError: If the file is missing or malformed
    """
    source = Path(path)

    try:
        dataset = Dataset.model_validate_json(source.read_text(encoding="utf-8"))
    except OSError as e:
        raise UpstreamDataError("dataset", f"cannot read {source}: {e}") from e
    except PydanticValidationError as e:
        raise UpstreamDataError("dataset", f"malformed {source}: {e.error_count()} error(s)") from e

    for instrument_id, data in dataset.instruments.items():
        prices.register(instrument_id, _to_points(data.prices), name=data.name)

    for key, rows in dataset.benchmarks.items():
        benchmarks.register(key, _to_points(rows))

    logger.info(
        f"Loaded dataset {source.name}: {len(dataset.instruments)} instrument(s), "
        f"{len(dataset.benchmarks)} benchmark(s)"
    )
    return dataset
