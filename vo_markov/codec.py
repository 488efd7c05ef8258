from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from .chain import SequenceModel
from .elements import UNKNOWN
from .random_source import RandomLike

FORMAT_NAME = "vo_markov"
FORMAT_VERSION = 1


class CodecError(ValueError):
    pass


class ModelCodec:
    """Interface for turning a ``SequenceModel`` into a payload and back."""

    def encode(self, model: SequenceModel) -> Any:
        raise NotImplementedError

    def decode(self, payload: Any, rng: Optional[RandomLike] = None) -> SequenceModel:
        raise NotImplementedError


def _encode_slot(value: Any) -> Any:
    if value is UNKNOWN:
        return {"unknown": True}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, tuple):
        return {"tuple": [_encode_slot(v) for v in value]}
    raise CodecError(
        f"Element {value!r} of type {type(value).__name__} is not JSON encodable; "
        "use str, int, float, bool, None or tuples of those."
    )


def _decode_slot(value: Any, where: str) -> Any:
    if isinstance(value, dict):
        if value.get("unknown") is True and len(value) == 1:
            return UNKNOWN
        if isinstance(value.get("tuple"), list) and len(value) == 1:
            return tuple(_decode_slot(v, where) for v in value["tuple"])
        raise CodecError(f"{where}: unrecognised tagged value {value!r}.")
    if isinstance(value, list):
        raise CodecError(f"{where}: bare list is not a valid element.")
    return value


class JsonCodec(ModelCodec):
    """JSON text codec.

    Contexts are written as a list of ``{"key": [...], "items": [[element,
    weight], ...]}`` records; ``UNKNOWN`` slots become ``{"unknown": true}``
    and tuples become ``{"tuple": [...]}`` so they survive the round trip.
    """

    def __init__(self, indent: Optional[int] = None, sort_keys: bool = False) -> None:
        self.indent = indent
        self.sort_keys = sort_keys

    def to_payload(self, model: SequenceModel) -> Dict[str, Any]:
        state = model.state()
        contexts: List[Dict[str, Any]] = []
        for key, weights in state["contexts"].items():
            contexts.append(
                {
                    "key": [_encode_slot(slot) for slot in key],
                    "items": [[_encode_slot(e), w] for e, w in weights.items()],
                }
            )
        return {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "order": state["order"],
            "optional_positions": state["optional_positions"],
            "contexts": contexts,
        }

    def encode(self, model: SequenceModel) -> str:
        return json.dumps(
            self.to_payload(model),
            ensure_ascii=False,
            indent=self.indent,
            sort_keys=self.sort_keys,
        )

    def decode(self, payload: Any, rng: Optional[RandomLike] = None) -> SequenceModel:
        if isinstance(payload, (str, bytes, bytearray)):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise CodecError(f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise CodecError("Expected a JSON object at the top level.")
        if payload.get("format") != FORMAT_NAME:
            raise CodecError(f"format: expected '{FORMAT_NAME}', got {payload.get('format')!r}.")
        if payload.get("version") != FORMAT_VERSION:
            raise CodecError(
                f"version: unsupported version {payload.get('version')!r}."
            )
        order = payload.get("order")
        if not isinstance(order, int) or isinstance(order, bool) or order < 0:
            raise CodecError(f"order: expected non-negative integer, got {order!r}.")
        positions = payload.get("optional_positions", [])
        if not isinstance(positions, list) or not all(
            isinstance(p, int) and not isinstance(p, bool) for p in positions
        ):
            raise CodecError("optional_positions: expected a list of integers.")
        records = payload.get("contexts", [])
        if not isinstance(records, list):
            raise CodecError("contexts: expected a list.")

        contexts: Dict[tuple, Dict[Any, int]] = {}
        for i, record in enumerate(records):
            where = f"contexts[{i}]"
            if not isinstance(record, dict):
                raise CodecError(f"{where}: expected an object.")
            raw_key = record.get("key")
            raw_items = record.get("items")
            if not isinstance(raw_key, list) or not isinstance(raw_items, list):
                raise CodecError(f"{where}: 'key' and 'items' must be lists.")
            key = tuple(_decode_slot(slot, f"{where}.key") for slot in raw_key)
            if key in contexts:
                raise CodecError(f"{where}: duplicate context key {key!r}.")
            weights: Dict[Any, int] = {}
            for pair in raw_items:
                if not isinstance(pair, list) or len(pair) != 2:
                    raise CodecError(f"{where}.items: expected [element, weight] pairs.")
                element = _decode_slot(pair[0], f"{where}.items")
                weight = pair[1]
                if not isinstance(weight, int) or isinstance(weight, bool) or weight < 0:
                    raise CodecError(
                        f"{where}.items: weight for {element!r} must be a non-negative integer."
                    )
                if element in weights:
                    raise CodecError(f"{where}.items: duplicate element {element!r}.")
                weights[element] = weight
            contexts[key] = weights
        try:
            return SequenceModel.from_state(order, positions, contexts, rng=rng)
        except (ValueError, TypeError, OverflowError) as exc:
            raise CodecError(str(exc)) from exc
