"""Request validation for trade and close payloads.

Runs before any network access. Payloads are checked in their wire shape
(camelCase keys) so that REST bodies and model instances take the same path;
Python field names in a mapping are folded onto their wire names first.
"""

import math
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from gateway.errors import InvalidRequestError
from gateway.models.mt5 import ClosePositionRequest, TradeRequest

MIN_VOLUME = 0.01
MAX_VOLUME = 100.0
MAX_COMMENT_LENGTH = 64
SIDES = ("buy", "sell")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)


def is_valid_volume(value: Any) -> bool:
    return is_finite_number(value) and MIN_VOLUME <= value <= MAX_VOLUME


def _volume_error(field: str, value: Any) -> str:
    return f"{field}: invalid value {value!r}, must be a number between {MIN_VOLUME} and {MAX_VOLUME:g}"


def validate_trade_request(data: Mapping[str, Any]) -> list[str]:
    """Return every problem with a trade payload; empty means valid."""
    errors: list[str] = []

    symbol = data.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        errors.append("symbol: must be a non-empty string")

    volume = data.get("volume")
    if volume is None:
        errors.append("volume: is required")
    elif not is_valid_volume(volume):
        errors.append(_volume_error("volume", volume))

    side = data.get("side")
    if side not in SIDES:
        errors.append('side: must be either "buy" or "sell"')

    for field in ("price", "stopLoss", "takeProfit"):
        value = data.get(field)
        if value is not None and not is_finite_number(value):
            errors.append(f"{field}: must be a finite number")

    comment = data.get("comment")
    if comment is not None:
        if not isinstance(comment, str):
            errors.append("comment: must be a string")
        elif len(comment) > MAX_COMMENT_LENGTH:
            errors.append(f"comment: must be {MAX_COMMENT_LENGTH} characters or less")

    return errors


def validate_close_request(data: Mapping[str, Any]) -> list[str]:
    errors: list[str] = []

    position_id = data.get("positionId")
    if position_id is None:
        errors.append("positionId: is required")
    elif not _is_positive_integer(position_id):
        errors.append("positionId: must be a positive integer")

    volume = data.get("volume")
    if volume is not None and not is_valid_volume(volume):
        errors.append(_volume_error("volume", volume))

    return errors


def _is_positive_integer(value: Any) -> bool:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        value = int(value)
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _as_wire(
    payload: BaseModel | Mapping[str, Any], model: type[BaseModel]
) -> dict[str, Any]:
    """Return the payload keyed by wire (camelCase) names only.

    Python field names (``stop_loss``) are folded onto their aliases so no
    value can reach the model without passing the wire-key checks. When both
    spellings are present the wire key wins.
    """
    if isinstance(payload, BaseModel):
        return payload.model_dump(by_alias=True, exclude_none=True)

    aliases = {name: field.alias or name for name, field in model.model_fields.items()}
    data = dict(payload)
    for name, alias in aliases.items():
        if name != alias and name in data:
            value = data.pop(name)
            data.setdefault(alias, value)
    return data


def _build(model: type[BaseModel], data: dict[str, Any]):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidRequestError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e


def parse_trade_request(payload: TradeRequest | Mapping[str, Any]) -> TradeRequest:
    """Validate a trade payload and return it as a TradeRequest.

    Raises InvalidRequestError listing every offending field.
    """
    data = _as_wire(payload, TradeRequest)
    errors = validate_trade_request(data)
    if errors:
        raise InvalidRequestError(errors)
    if isinstance(payload, TradeRequest):
        return payload
    return _build(TradeRequest, data)


def parse_close_request(
    payload: ClosePositionRequest | Mapping[str, Any],
) -> ClosePositionRequest:
    data = _as_wire(payload, ClosePositionRequest)
    errors = validate_close_request(data)
    if errors:
        raise InvalidRequestError(errors)
    if isinstance(payload, ClosePositionRequest):
        return payload
    return _build(ClosePositionRequest, data)
