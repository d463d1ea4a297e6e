"""Pydantic models for risk engine inputs and outputs.

Positions are immutable snapshots handed in by the caller (typically read
from a store upstream).  The risk report is JSON-serializable through
``model_dump(mode="json")``; ``by_alias=True`` yields the camelCase keys the
API layer exposes.
"""

from __future__ import annotations

import datetime as dt
import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    model_validator,
)
from pydantic.alias_generators import to_camel


class InstrumentKind(str, Enum):
    """Kinds of instrument a position can hold."""

    EQUITY = "EQUITY"
    OPTION = "OPTION"
    DERIVATIVE_WITH_LEVERAGE = "DERIVATIVE_WITH_LEVERAGE"


# Asset-store labels -> engine kinds
LEGACY_KIND_LABELS = {
    "STOCK": InstrumentKind.EQUITY.value,
    "OPTION": InstrumentKind.OPTION.value,
    "FUTURE": InstrumentKind.DERIVATIVE_WITH_LEVERAGE.value,
}


class Strategy(str, Enum):
    """Portfolio risk aggregation strategy."""

    VAR = "VAR"
    CVAR = "CVAR"
    MONTE_CARLO = "MONTE_CARLO"

    @classmethod
    def parse(cls, value: Any) -> "Strategy":
        """Resolve a caller-supplied strategy selector.

        Matching ignores case and surrounding whitespace, so ``"var"``
        selects VAR.  ``None`` selects VAR.  Unrecognised selectors fall
        back to CVAR, which aggregates by plain summation.
        """
        if value is None:
            return cls.VAR
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.CVAR


def _normalize_kind(kind: Any) -> str | None:
    if isinstance(kind, InstrumentKind):
        return kind.value
    if isinstance(kind, str):
        kind = kind.strip().upper()
        return LEGACY_KIND_LABELS.get(kind, kind)
    return None


def _pop_first(data: dict[str, Any], *keys: str) -> Any:
    value = None
    for key in keys:
        if key in data:
            candidate = data.pop(key)
            if value is None:
                value = candidate
    return value


class PricePoint(BaseModel):
    """A single dated price sample."""

    model_config = ConfigDict(frozen=True)

    date: dt.datetime | dt.date
    price: float = Field(ge=0)

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        if isinstance(data, (tuple, list)) and len(data) == 2:
            return {"date": data[0], "price": data[1]}
        return data


class _PositionBase(BaseModel):
    """Fields shared by every position variant.

    ``quantity`` is signed: positive for long, negative for short.
    ``price_history`` keeps insertion order; it need not be sorted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str
    price: float = Field(ge=0)
    quantity: float
    price_history: list[PricePoint] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_store_fields(cls, data: Any) -> Any:
        """Accept documents shaped like asset-store records (``_id``, ``type``, ``leverage``)."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        position_id = _pop_first(data, "id", "_id")
        if position_id is not None:
            data["id"] = str(position_id)

        kind = _pop_first(data, "instrument_kind", "instrumentKind", "type")
        if kind is not None:
            data["instrument_kind"] = _normalize_kind(kind)

        leverage = _pop_first(data, "leverage_multiplier", "leverageMultiplier", "leverage")
        if leverage is not None:
            data["leverage_multiplier"] = leverage

        return data


class EquityPosition(_PositionBase):
    instrument_kind: Literal["EQUITY"] = "EQUITY"


class OptionPosition(_PositionBase):
    """Option holding.  Strike and underlying are descriptive only; options are not priced."""

    instrument_kind: Literal["OPTION"] = "OPTION"
    strike_price: float | None = None
    underlying_price: float | None = None


class LeveragedDerivativePosition(_PositionBase):
    """Leveraged derivative (e.g. a future); exposure scales by ``leverage_multiplier``."""

    instrument_kind: Literal["DERIVATIVE_WITH_LEVERAGE"] = "DERIVATIVE_WITH_LEVERAGE"
    leverage_multiplier: float = Field(default=1.0, gt=0)


def _position_kind(value: Any) -> str | None:
    if isinstance(value, dict):
        for key in ("instrument_kind", "instrumentKind", "type"):
            if key in value:
                return _normalize_kind(value[key])
        return InstrumentKind.EQUITY.value
    return _normalize_kind(getattr(value, "instrument_kind", None))


Position = Annotated[
    Union[
        Annotated[EquityPosition, Tag(InstrumentKind.EQUITY.value)],
        Annotated[OptionPosition, Tag(InstrumentKind.OPTION.value)],
        Annotated[LeveragedDerivativePosition, Tag(InstrumentKind.DERIVATIVE_WITH_LEVERAGE.value)],
    ],
    Discriminator(_position_kind),
]

_positions_adapter = TypeAdapter(list[Position])


class AssetContribution(BaseModel):
    """One asset's standalone risk and its share of the summed standalone risk."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    asset_id: str
    name: str
    individual_risk: float
    contribution_percentage: float


class RiskReport(BaseModel):
    """Result of a portfolio risk computation."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    strategy: Strategy
    total_risk: float
    portfolio_volatility: float
    diversification_benefit: float
    per_asset_contributions: list[AssetContribution] = Field(default_factory=list)
    timestamp: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


def parse_positions(payload: str | bytes | list | dict) -> list[Position]:
    """Validate a positions snapshot.

    Accepts a JSON document (or its decoded form) that is either a list of
    position objects or an object with a ``positions`` list.

    Raises:
        pydantic.ValidationError: If any position is malformed
    """
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    if isinstance(payload, dict):
        payload = payload.get("positions", [])
    return _positions_adapter.validate_python(payload)


def load_positions(path: str | Path) -> list[Position]:
    """Read and validate a JSON positions snapshot from disk."""
    return parse_positions(Path(path).read_text(encoding="utf-8"))
