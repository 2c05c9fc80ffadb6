"""
UniPen ComponentSet Builder

Accumulates the pen data of one sample: coordinates as decoded, the
run/gap sequence, and .SEGMENT declarations. Segments are only resolved in
build(), since later pen statements may still add the runs they reference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import ValidationError
from .model import (
    BoundingBox,
    Component,
    ComponentSet,
    Coordinate,
    CoordinateRange,
    Quality,
    Segment,
)
from .statements import ComponentList, ComponentPoint, ComponentRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawCoordinate:
    """
    A decoded sample before time reconstruction.

    `time` is the raw T channel value in milliseconds, or None when the
    coordinate order has no T channel.
    """
    x: float
    y: float
    time: Optional[float] = None
    pressure: Optional[float] = None
    z: Optional[float] = None
    button: Optional[float] = None
    rho: Optional[float] = None
    theta: Optional[float] = None
    phi: Optional[float] = None


@dataclass(frozen=True)
class PendingSegment:
    hierarchy: str
    component_list: ComponentList
    quality: Optional[Quality] = None
    label: Optional[str] = None


class ComponentSetBuilder:
    """Mutable accumulator for one ComponentSet."""

    def __init__(self, name: str = "", explicit: bool = False):
        self.name = name
        self.explicit = explicit  # named by .START_SET rather than by a file

        self._coordinates: List[RawCoordinate] = []
        self._times: List[float] = []  # seconds, stamped as each coordinate is added
        self._components: List[Component] = []
        self._runs: List[CoordinateRange] = []
        self._segments: List[PendingSegment] = []

        # Seconds since the start of the sample, driven by the sampling rate and .DT
        self._elapsed = 0.0
        # (first raw T value, its time in seconds) for the current stretch of T-channel samples
        self._t_origin: Optional[Tuple[float, float]] = None

    def is_empty(self) -> bool:
        return not (self._coordinates or self._components or self._segments)

    @property
    def run_count(self) -> int:
        return len(self._runs)

    # =========================================================================
    # ACCUMULATION
    # =========================================================================

    def pen_down(self, coordinates: List[RawCoordinate], sample_period: Optional[float] = None) -> None:
        self._add_run(Component.pen_down, coordinates, sample_period)

    def pen_up(self, coordinates: List[RawCoordinate], sample_period: Optional[float] = None) -> None:
        self._add_run(Component.pen_up, coordinates, sample_period)

    def _add_run(self, make, coordinates: List[RawCoordinate], sample_period: Optional[float]) -> None:
        # An empty pen statement only switches pen state; it is not a run
        if not coordinates:
            return

        first = len(self._coordinates)
        for coordinate in coordinates:
            self._coordinates.append(coordinate)
            self._times.append(self._stamp(coordinate, sample_period))

        run = CoordinateRange(first, len(self._coordinates) - 1)
        self._runs.append(run)
        self._components.append(make(run))

    def _stamp(self, coordinate: RawCoordinate, sample_period: Optional[float]) -> float:
        """
        Time of a coordinate in seconds since the start of the sample.

        Explicit T values are milliseconds, measured from the first T value of
        their stretch, and the stretch starts at the current time. Without T the
        coordinate gets the current time, which then advances by the sample
        period. Switching between the two keeps times non-decreasing.
        """
        if coordinate.time is None:
            self._t_origin = None
            time = self._elapsed
            if sample_period is not None:
                self._elapsed += sample_period
            return time

        if self._t_origin is None:
            self._t_origin = (coordinate.time, self._elapsed)
        raw_origin, base = self._t_origin
        time = base + (coordinate.time - raw_origin) / 1000.0
        self._elapsed = time
        return time

    def dt(self, duration: float, advance: bool = True) -> None:
        """Record a gap of `duration` seconds, moving the time cursor unless told not to."""
        self._components.append(Component.dt(duration))
        if advance:
            self._elapsed += duration

    def segment(
        self,
        hierarchy: str,
        component_list: ComponentList,
        quality: Optional[Quality] = None,
        label: Optional[str] = None,
    ) -> None:
        self._segments.append(PendingSegment(hierarchy, component_list, quality, label))

    # =========================================================================
    # FINALIZATION
    # =========================================================================

    def build(self) -> ComponentSet:
        """Resolve segments and bounding boxes and freeze the sample."""
        coordinates = self._finalize_coordinates()
        segments = tuple(self._resolve(pending) for pending in self._segments)
        boxes = tuple(_bounding_box(segment.coordinates, coordinates) for segment in segments)

        logger.debug(
            "Built component set %r: %d coordinates, %d runs, %d segments",
            self.name, len(coordinates), len(self._runs), len(segments),
        )
        return ComponentSet(
            name=self.name,
            coordinates=coordinates,
            components=tuple(self._components),
            segments=segments,
            bounding_boxes=boxes,
        )

    def _finalize_coordinates(self) -> Tuple[Coordinate, ...]:
        result = []
        for raw, time in zip(self._coordinates, self._times):
            result.append(Coordinate(
                x=raw.x,
                y=raw.y,
                time=time,
                pressure=raw.pressure,
                z=raw.z,
                button=raw.button,
                rho=raw.rho,
                theta=raw.theta,
                phi=raw.phi,
            ))
        return tuple(result)

    def _resolve(self, pending: PendingSegment) -> Segment:
        ranges = []
        for item in pending.component_list:
            if isinstance(item, ComponentRange):
                start = self._point(item.start, pending)
                end = self._point(item.end, pending)
                if end.last < start.first:
                    raise ValidationError(
                        f"Segment {pending.hierarchy!r} in {self.name!r} has an inverted range "
                        f"{_describe(item.start)}-{_describe(item.end)}"
                    )
                ranges.append(CoordinateRange(start.first, end.last))
            else:
                ranges.append(self._point(item, pending))

        return Segment(
            hierarchy=pending.hierarchy,
            coordinates=tuple(ranges),
            quality=pending.quality,
            label=pending.label,
        )

    def _point(self, point: ComponentPoint, pending: PendingSegment) -> CoordinateRange:
        if not 0 <= point.component < len(self._runs):
            raise ValidationError(
                f"Segment {pending.hierarchy!r} in {self.name!r} references component "
                f"{point.component}, but only {len(self._runs)} runs exist"
            )
        run = self._runs[point.component]
        if point.index is None:
            return run
        if point.index >= len(run):
            raise ValidationError(
                f"Segment {pending.hierarchy!r} in {self.name!r} references point "
                f"{_describe(point)}, but component {point.component} has {len(run)} points"
            )
        index = run.first + point.index
        return CoordinateRange(index, index)


def _describe(point: ComponentPoint) -> str:
    return str(point.component) if point.index is None else f"{point.component}:{point.index}"


def _bounding_box(ranges: Tuple[CoordinateRange, ...], coordinates: Tuple[Coordinate, ...]) -> BoundingBox:
    xs = [coordinates[i].x for r in ranges for i in r]
    ys = [coordinates[i].y for r in ranges for i in r]
    return BoundingBox(
        x_min=min(xs),
        y_min=min(ys),
        x_max=max(xs),
        y_max=max(ys),
        coordinates=ranges,
    )
