from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

TOGGLE_DOMAINS = ("switch.", "light.")
SENSOR_DOMAIN = "sensor."
UNAVAILABLE_STATES = ("unknown", "unavailable")

@dataclass(frozen=True)
class EntityRecord:
    entity_id: str
    name: Optional[str]
    unit: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"entity_id": self.entity_id, "name": self.name}
        if self.unit is not None:
            d["unit"] = self.unit
        return d

def _entity_id(s: Any) -> str:
    if not isinstance(s, dict):
        return ""
    eid = s.get("entity_id")
    return eid if isinstance(eid, str) else ""

def _attributes(s: Dict[str, Any]) -> Dict[str, Any]:
    attrs = s.get("attributes")
    return attrs if isinstance(attrs, dict) else {}

def filter_toggleable(states: Iterable[Any]) -> List[EntityRecord]:
    out = []
    for s in states:
        eid = _entity_id(s)
        if eid.startswith(TOGGLE_DOMAINS):
            out.append(EntityRecord(entity_id=eid, name=_attributes(s).get("friendly_name")))
    return out

def filter_sensors(states: Iterable[Any]) -> List[EntityRecord]:
    out = []
    for s in states:
        eid = _entity_id(s)
        if not eid.startswith(SENSOR_DOMAIN):
            continue
        attrs = _attributes(s)
        state = s.get("state")
        unit = attrs.get("unit_of_measurement")
        if not state or not unit:
            continue
        if state in UNAVAILABLE_STATES:
            continue
        out.append(EntityRecord(entity_id=eid, name=attrs.get("friendly_name"), unit=unit))
    return out

def arrays_equal(a: Optional[Sequence[Any]], b: Optional[Sequence[Any]]) -> bool:
    """Order-sensitive, shallow comparison of two sequences.

    ``None`` only equals itself. Elements are compared with ``==`` at matching
    indices; nested containers are not walked.
    """
    if a is b:
        return True
    if a is None or b is None:
        return False
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x != y:
            return False
    return True
