"""
Кодирование и декодирование временных слотов (самовывоз и доставка)

В хранилище поля pickup_time_slots / delivery_time_slots лежат либо как
готовый JSON-массив, либо как строка с JSON внутри (старые записи).
Разбор происходит в одном месте, остальной код видит только
кортеж (start, end) и список DeliverySlot.
"""
import json
import re
from dataclasses import dataclass, asdict
from typing import Any, List, Optional, Sequence, Tuple, Union
from loguru import logger
from utils.exceptions import DecodingError, ValidationError

DEFAULT_PICKUP_WINDOW: Tuple[str, str] = ("09:00", "20:00")

_HHMM_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


@dataclass(frozen=True)
class DeliverySlot:
    name: str
    start: str
    end: str
    enabled: bool = True


@dataclass(frozen=True)
class StructuredSlots:
    value: Any


@dataclass(frozen=True)
class JsonTextSlots:
    text: str


RawSlots = Union[StructuredSlots, JsonTextSlots]


def parse_hhmm(value: str, field: str = "time") -> Tuple[int, int]:
    """Разбирает HH:MM (допускается H:MM и HH:MM:SS) в (часы, минуты)"""
    if not isinstance(value, str):
        raise ValidationError(field, f"Ожидается время в формате HH:MM: {value!r}")
    match = _HHMM_RE.match(value)
    if not match:
        raise ValidationError(field, f"Ожидается время в формате HH:MM: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(field, f"Время вне диапазона: {value!r}")
    return hours, minutes


def minutes_of_day(value: str, field: str = "time") -> int:
    hours, minutes = parse_hhmm(value, field)
    return hours * 60 + minutes


def normalize_hhmm(value: str, field: str = "time") -> str:
    hours, minutes = parse_hhmm(value, field)
    return f"{hours:02d}:{minutes:02d}"


def classify_raw_slots(raw: Any) -> Optional[RawSlots]:
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return JsonTextSlots(raw)
    return StructuredSlots(raw)


def _load(raw: RawSlots) -> Any:
    if isinstance(raw, StructuredSlots):
        return raw.value
    try:
        return json.loads(raw.text)
    except (TypeError, ValueError) as e:
        raise DecodingError(f"Некорректный JSON во временных слотах: {raw.text!r}") from e


def _pickup_window_from(value: Any) -> Tuple[str, str]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise DecodingError(f"Окно самовывоза должно содержать два значения: {value!r}")
    try:
        return normalize_hhmm(value[0]), normalize_hhmm(value[1])
    except ValidationError as e:
        raise DecodingError(str(e)) from e


def _delivery_slot_from(value: Any) -> DeliverySlot:
    if not isinstance(value, dict):
        raise DecodingError(f"Слот доставки должен быть объектом: {value!r}")
    try:
        return DeliverySlot(
            name=str(value.get("name", "")),
            start=normalize_hhmm(value["start"]),
            end=normalize_hhmm(value["end"]),
            enabled=bool(value.get("enabled", True)),
        )
    except (KeyError, ValidationError) as e:
        raise DecodingError(f"Некорректный слот доставки: {value!r}") from e


def decode_pickup_window(raw: Any) -> Tuple[str, str]:
    """
    Возвращает окно самовывоза (start, end)

    При пустом значении или ошибке разбора подставляется DEFAULT_PICKUP_WINDOW
    """
    classified = classify_raw_slots(raw)
    if classified is None:
        return DEFAULT_PICKUP_WINDOW
    try:
        value = _load(classified)
        if value is None:
            return DEFAULT_PICKUP_WINDOW
        return _pickup_window_from(value)
    except DecodingError as e:
        logger.warning(f"Окно самовывоза не разобрано, используется значение по умолчанию: {e}")
        return DEFAULT_PICKUP_WINDOW


def decode_delivery_slots(raw: Any) -> List[DeliverySlot]:
    """
    Возвращает список слотов доставки

    При пустом значении или ошибке разбора возвращается пустой список
    """
    classified = classify_raw_slots(raw)
    if classified is None:
        return []
    try:
        value = _load(classified)
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise DecodingError(f"Слоты доставки должны быть списком: {value!r}")
        return [_delivery_slot_from(item) for item in value]
    except DecodingError as e:
        logger.warning(f"Слоты доставки не разобраны, используется пустой список: {e}")
        return []


def encode_pickup_window(window: Sequence[str]) -> List[str]:
    if len(window) != 2:
        raise ValidationError("pickup_time_slots", "Окно самовывоза должно содержать начало и конец")
    return [normalize_hhmm(window[0], "pickup_time_slots"), normalize_hhmm(window[1], "pickup_time_slots")]


def encode_delivery_slots(slots: Sequence[Union[DeliverySlot, dict]]) -> List[dict]:
    encoded = []
    for slot in slots:
        if isinstance(slot, dict):
            try:
                slot = DeliverySlot(
                    name=str(slot.get("name", "")),
                    start=slot["start"],
                    end=slot["end"],
                    enabled=bool(slot.get("enabled", True)),
                )
            except KeyError as e:
                raise ValidationError("delivery_time_slots", f"У слота доставки нет поля {e}") from e
        encoded.append(asdict(DeliverySlot(
            name=slot.name,
            start=normalize_hhmm(slot.start, "delivery_time_slots"),
            end=normalize_hhmm(slot.end, "delivery_time_slots"),
            enabled=slot.enabled,
        )))
    return encoded
