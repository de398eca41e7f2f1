"""Per-field value codecs: local string sequences <-> Jira wire JSON.

Every codec maps ``None`` (field intentionally cleared) to ``None`` and back.
Codec choice is made per entry when it is created; nothing is inferred from
the values themselves. New field schemas plug in through ``register_codec``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any, get_args, get_origin

import pandas as pd
import pytz

from .codec_config import load_codec_rules
from .config import DEFAULT_CODEC
from .errors import CodecError
from .models import FieldDefinition

logger = logging.getLogger(__name__)

Values = list[str | None]


class ValueCodec(ABC):
    name: str = ""

    @abstractmethod
    def encode(self, values: Sequence[str | None] | None) -> Any: ...

    @abstractmethod
    def decode(self, wire: Any) -> Values | None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _as_list(wire: Any, codec: str) -> list[Any]:
    if isinstance(wire, list):
        return wire
    # Single-select fields come back as one object rather than an array
    if isinstance(wire, (Mapping, str, int, float)):
        return [wire]
    raise CodecError(f"{codec} codec cannot decode {type(wire).__name__} value: {wire!r}")


class _ReferenceCodec(ValueCodec):
    """Each value becomes a one-key reference object ``{<key>: value}``."""

    reference_key: str = "value"
    fallback_keys: tuple[str, ...] = ()
    # Encode a single value as one object instead of a one-element array
    single: bool = False

    def encode(self, values):
        if values is None:
            return None
        wire = [{self.reference_key: v} for v in values]
        if self.single and len(wire) == 1:
            return wire[0]
        return wire

    def decode(self, wire):
        if wire is None:
            return None
        out: Values = []
        for item in _as_list(wire, self.name):
            if isinstance(item, Mapping):
                for key in (self.reference_key, *self.fallback_keys):
                    if key in item:
                        out.append(None if item[key] is None else str(item[key]))
                        break
                else:
                    raise CodecError(f"{self.name} codec: no '{self.reference_key}' in {item!r}")
            elif item is None:
                out.append(None)
            else:
                out.append(str(item))
        return out


class SelectValueCodec(_ReferenceCodec):
    name = "select"
    reference_key = "value"
    fallback_keys = ("name",)


class OptionCodec(SelectValueCodec):
    # single select / radio buttons: one option is sent as a bare object
    name = "option"
    single = True


class KeyReferenceCodec(_ReferenceCodec):
    name = "key"
    reference_key = "key"
    fallback_keys = ("objectKey",)


class NameReferenceCodec(_ReferenceCodec):
    # components, versions
    name = "name"
    reference_key = "name"
    fallback_keys = ("value",)


class UserReferenceCodec(_ReferenceCodec):
    name = "users"
    reference_key = "accountId"
    fallback_keys = ("name", "key")


class SingleUserCodec(UserReferenceCodec):
    name = "user"
    single = True


class ScalarValueCodec(ValueCodec):
    """Plain JSON scalars (text, date, datetime): one value goes on the wire bare."""

    name = "value"

    def _to_wire(self, value: str | None) -> Any:
        return value

    def _from_wire(self, item: Any) -> str | None:
        if item is None:
            return None
        if isinstance(item, (Mapping, list)):
            raise CodecError(f"{self.name} codec cannot decode {type(item).__name__} value: {item!r}")
        return str(item)

    def encode(self, values):
        if values is None:
            return None
        wire = [self._to_wire(v) for v in values]
        return wire[0] if len(wire) == 1 else wire

    def decode(self, wire):
        if wire is None:
            return None
        return [self._from_wire(item) for item in (wire if isinstance(wire, list) else [wire])]


class NumberCodec(ScalarValueCodec):
    name = "number"

    def _to_wire(self, value):
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"number codec cannot encode {value!r}") from exc

    def _from_wire(self, item):
        if isinstance(item, bool):
            raise CodecError(f"number codec cannot decode {item!r}")
        if isinstance(item, (int, float)):
            return str(float(item))
        return super()._from_wire(item)


class RawJsonCodec(ValueCodec):
    """Fallback for fields no other codec understands.

    Strings pass through unchanged; any other JSON value is kept as its
    JSON text so the entry still diffs and can be written back.
    """

    name = "raw"

    @staticmethod
    def _dump(item: Any) -> str | None:
        if item is None or isinstance(item, str):
            return item
        return json.dumps(item, sort_keys=True)

    @staticmethod
    def _load(value: str | None) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except ValueError:
            return value

    def encode(self, values):
        if values is None:
            return None
        wire = [self._load(v) for v in values]
        return wire[0] if len(wire) == 1 else wire

    def decode(self, wire):
        if wire is None:
            return None
        if isinstance(wire, list):
            return [self._dump(item) for item in wire]
        return [self._dump(wire)]


class MultiStringCodec(ValueCodec):
    name = "multistring"

    def encode(self, values):
        if values is None:
            return None
        return list(values)

    def decode(self, wire):
        if wire is None:
            return None
        return [None if item is None else str(item) for item in _as_list(wire, self.name)]


class CascadingSelectCodec(ValueCodec):
    """Two-level select: ``[parent]`` or ``[parent, child]``."""

    name = "cascading"

    def encode(self, values):
        if values is None:
            return None
        if len(values) > 2:
            raise CodecError(f"cascading select takes at most 2 values, got {len(values)}")
        out: dict[str, Any] = {}
        if values:
            out["value"] = values[0]
        if len(values) > 1:
            out["child"] = {"value": values[1]}
        return out

    def decode(self, wire):
        if wire is None:
            return None
        if not isinstance(wire, Mapping):
            raise CodecError(f"cascading codec expects an object, got {type(wire).__name__}")
        if "value" not in wire:
            return []
        out: Values = [wire.get("value")]
        child = wire.get("child")
        if isinstance(child, Mapping) and "value" in child:
            out.append(child.get("value"))
        return out


_REGISTRY: dict[str, ValueCodec] = {}


def register_codec(name: str, codec: ValueCodec) -> None:
    key = name.strip().lower()
    if key in _REGISTRY and _REGISTRY[key] is not codec:
        logger.debug("Replacing codec %s: %r -> %r", key, _REGISTRY[key], codec)
    _REGISTRY[key] = codec


def get_codec(name: str | None = None) -> ValueCodec:
    key = (name or DEFAULT_CODEC).strip().lower()
    try:
        return _REGISTRY[key]
    except KeyError:
        raise CodecError(f"No codec registered under '{key}'") from None


def registered_codecs() -> dict[str, ValueCodec]:
    return dict(_REGISTRY)


def codec_for_schema(definition: FieldDefinition | None) -> ValueCodec:
    """Pick the codec configured for a field's schema, default codec otherwise."""
    if definition is None:
        return get_codec()
    rules = load_codec_rules()
    for candidate in (definition.schema_custom, definition.schema_type):
        if candidate and candidate in rules:
            return get_codec(rules[candidate])
    return get_codec()


for _codec in (
    SelectValueCodec(),
    OptionCodec(),
    KeyReferenceCodec(),
    NameReferenceCodec(),
    UserReferenceCodec(),
    SingleUserCodec(),
    ScalarValueCodec(),
    NumberCodec(),
    MultiStringCodec(),
    CascadingSelectCodec(),
    RawJsonCodec(),
):
    register_codec(_codec.name, _codec)


def _to_timestamp(raw: Any, tz: str) -> pd.Timestamp:
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float, date)):
        raise CodecError(f"Cannot parse {type(raw).__name__} value as a timestamp")
    ts = pd.to_datetime(raw, errors="coerce")
    if ts is None or pd.isna(ts):
        raise CodecError(f"Cannot parse {raw!r} as a timestamp")
    if getattr(ts, "tzinfo", None) is None:
        ts = ts.tz_localize(pytz.UTC)
    return ts.tz_convert(pytz.timezone(tz))


def decode_wire_as(raw: Any, target: Any, *, tz: str = "UTC") -> Any:
    """Parse a raw wire value as ``target``.

    Supported targets: ``str``, ``int``, ``float``, ``bool``, ``datetime``,
    ``date``, ``list`` / ``list[T]``, ``dict``, dataclass types (built from
    the matching keys of a JSON object) and any one-argument callable.
    """
    origin = get_origin(target)
    if origin is list:
        (item_type,) = get_args(target) or (Any,)
        items = raw if isinstance(raw, list) else [raw]
        if item_type is Any:
            return list(items)
        return [decode_wire_as(item, item_type, tz=tz) for item in items]
    if target is Any:
        return raw
    if target is str:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, Mapping):
            for key in ("value", "name", "key", "displayName"):
                if isinstance(raw.get(key), str):
                    return raw[key]
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return str(raw)
        raise CodecError(f"Cannot decode {type(raw).__name__} value as str: {raw!r}")
    if target is bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in {"true", "false"}:
            return raw.strip().lower() == "true"
        raise CodecError(f"Cannot decode {raw!r} as bool")
    if target in (int, float):
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
            raise CodecError(f"Cannot decode {type(raw).__name__} value as {target.__name__}: {raw!r}")
        try:
            return target(raw)
        except ValueError as exc:
            raise CodecError(f"Cannot decode {raw!r} as {target.__name__}") from exc
    if target is datetime:
        return _to_timestamp(raw, tz).to_pydatetime()
    if target is date:
        return _to_timestamp(raw, tz).date()
    if target is list:
        return list(raw) if isinstance(raw, list) else [raw]
    if target is dict:
        if isinstance(raw, Mapping):
            return dict(raw)
        raise CodecError(f"Cannot decode {type(raw).__name__} value as dict")
    if is_dataclass(target) and isinstance(target, type):
        if not isinstance(raw, Mapping):
            raise CodecError(f"{target.__name__} needs a JSON object, got {type(raw).__name__}")
        names = {f.name for f in fields(target)}
        try:
            return target(**{k: v for k, v in raw.items() if k in names})
        except TypeError as exc:
            raise CodecError(f"Cannot build {target.__name__} from {raw!r}: {exc}") from exc
    if callable(target):
        try:
            return target(raw)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"Cannot decode {raw!r} with {target!r}: {exc}") from exc
    raise CodecError(f"Unsupported decode target {target!r}")
