"""Lane zones: loading polygons from JSON and locating points inside them."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from trafficmon import log as _log
from trafficmon.geometry import point_in_polygon
from trafficmon.types import Point2f

_EXPECTED_COORD_SYS = "ipm"


class ZoneConfigError(ValueError):
    """Raised when a zone configuration is malformed or fails validation."""


@dataclass
class ZonePoly:
    """One zone polygon in the configured coordinate system."""

    zone_id: int = -1
    lane_id: Optional[int] = None
    poly: list[Point2f] = field(default_factory=list)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _parse_zone(z: Any) -> ZonePoly:
    if not isinstance(z, dict) or not _is_int(z.get("zone_id")):
        raise ZoneConfigError("ZoneConfig: zone missing 'zone_id' (int).")
    zone_id = z["zone_id"]
    lane_id = z["lane_id"] if _is_int(z.get("lane_id")) else None

    points = z.get("polygon")
    if not isinstance(points, list):
        raise ZoneConfigError(f"ZoneConfig: zone_id={zone_id} missing 'polygon' (array).")
    if len(points) < 3:
        raise ZoneConfigError(
            f"ZoneConfig: zone_id={zone_id} polygon must have >=3 points."
        )

    poly: list[Point2f] = []
    for p in points:
        if not (
            isinstance(p, list) and len(p) == 2 and _is_number(p[0]) and _is_number(p[1])
        ):
            raise ZoneConfigError(
                f"ZoneConfig: zone_id={zone_id} polygon point must be [x,y]."
            )
        poly.append((float(p[0]), float(p[1])))
    return ZonePoly(zone_id=zone_id, lane_id=lane_id, poly=poly)


@dataclass
class ZoneConfig:
    """Zone polygons and the coordinate system they are expressed in."""

    coordinate_system: str = ""
    zones: list[ZonePoly] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ZoneConfig":
        """Build and validate a config from a parsed JSON document."""
        if not isinstance(data, dict) or not isinstance(
            data.get("coordinate_system"), str
        ):
            raise ZoneConfigError("ZoneConfig: missing 'coordinate_system' (string).")
        if not isinstance(data.get("zones"), list):
            raise ZoneConfigError("ZoneConfig: missing 'zones' (array).")

        cfg = cls(
            coordinate_system=data["coordinate_system"],
            zones=[_parse_zone(z) for z in data["zones"]],
        )
        cfg._validate()
        return cfg

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ZoneConfig":
        """Read, parse and validate a zones JSON file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ZoneConfigError(f"ZoneConfig: failed to open json file: {path}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ZoneConfigError(f"ZoneConfig: json parse error: {exc}") from exc

        cfg = cls.from_dict(data)
        _log.info(
            "ZoneConfig loaded: coord_sys=%s, zones=%d",
            cfg.coordinate_system,
            len(cfg.zones),
        )
        return cfg

    def _validate(self) -> None:
        if not self.coordinate_system:
            raise ZoneConfigError("ZoneConfig validate: coordinate_system empty.")
        if self.coordinate_system != _EXPECTED_COORD_SYS:
            _log.warn(
                "ZoneConfig validate: coordinate_system='%s' (expected 'ipm').",
                self.coordinate_system,
            )

        seen: set[int] = set()
        for z in self.zones:
            if z.zone_id < 0:
                raise ZoneConfigError("ZoneConfig validate: zone_id must be >=0.")
            if z.zone_id in seen:
                raise ZoneConfigError(
                    f"ZoneConfig validate: duplicate zone_id={z.zone_id}."
                )
            seen.add(z.zone_id)
            if len(z.poly) < 3:
                raise ZoneConfigError(
                    f"ZoneConfig validate: zone_id={z.zone_id} polygon <3 points."
                )


class ZoneManager:
    """Answers which zone and lane an IPM-pixel point lies in."""

    def __init__(self, config: Optional[ZoneConfig] = None):
        self.config = config if config is not None else ZoneConfig()

    def load(self, zones_json_path: Union[str, Path]) -> None:
        """Load zones from JSON; on failure the zone list is left empty and the error raised."""
        try:
            self.config = ZoneConfig.from_json(zones_json_path)
        except ZoneConfigError as exc:
            self.config = ZoneConfig()
            _log.error("%s", exc)
            _log.error("ZoneManager: failed to load zones: %s", zones_json_path)
            raise

    def _find(self, point_ipm: Point2f) -> Optional[ZonePoly]:
        # The first zone in configuration order that contains the point wins.
        return next(
            (z for z in self.config.zones if point_in_polygon(z.poly, point_ipm, True)),
            None,
        )

    def zone_of(self, point_ipm: Point2f) -> Optional[int]:
        """Zone id containing the point (boundary included), or None."""
        zone = self._find(point_ipm)
        return zone.zone_id if zone is not None else None

    def lane_of(self, point_ipm: Point2f) -> Optional[int]:
        """Lane id of the zone containing the point, or None when absent."""
        zone = self._find(point_ipm)
        if zone is None or zone.lane_id is None or zone.lane_id < 0:
            return None
        return zone.lane_id