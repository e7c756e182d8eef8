"""Broad-phase spatial queries and AABB helpers built on pymunk.

The world is screen-space (y grows downward). Boxes are stored as
``pymunk.BB(left, bottom, right, top)`` where ``bottom`` holds the smaller y,
i.e. the visual top edge of the box on screen. Only the BB arithmetic and the
space's bounding-box tree are used: the space is never stepped, integration is
done by :mod:`pepper_runner.dynamics`.
"""

import pymunk
from typing import Dict, Iterable, List, Tuple


# Vertical extent used for horizontal window queries
_QUERY_HALF_HEIGHT = 1.0e6

_QUERY_FILTER = pymunk.ShapeFilter()


def box(x: float, y: float, width: float, height: float) -> pymunk.BB:
    """Axis-aligned box from a top-left corner and a size."""
    return pymunk.BB(x, y, x + width, y + height)


def inset(bb: pymunk.BB, amount: float) -> pymunk.BB:
    """Shrink (positive amount) or grow (negative amount) a box on every side."""
    return pymunk.BB(bb.left + amount, bb.bottom + amount, bb.right - amount, bb.top - amount)


def overlaps(a: pymunk.BB, b: pymunk.BB) -> bool:
    """Strict overlap test: boxes that merely touch do not overlap.

    ``pymunk.BB.intersects`` is inclusive, which would make a player standing
    exactly on a surface count as intersecting it.
    """
    return a.left < b.right and a.right > b.left and a.bottom < b.top and a.top > b.bottom


def touching(a: pymunk.BB, b: pymunk.BB, tolerance: float = 1.0) -> bool:
    """Overlap test with ``a`` grown by ``tolerance`` on every side."""
    return overlaps(inset(a, -tolerance), b)


def penetration(a: pymunk.BB, b: pymunk.BB) -> Tuple[float, float]:
    """Overlap depth of two boxes along x and y (non-positive when separated)."""
    dx = min(a.right - b.left, b.right - a.left)
    dy = min(a.top - b.bottom, b.top - a.bottom)
    return dx, dy


class SpatialIndex:
    """Horizontal-window lookup over world objects.

    Wraps a ``pymunk.Space`` whose static body carries one box shape per
    indexed object. Anything exposing a ``bounds`` property returning a
    ``pymunk.BB`` can be indexed; objects must not move while indexed.
    """

    def __init__(self):
        self.space = pymunk.Space()
        self._shapes: Dict[object, pymunk.Shape] = {}
        self._owners: Dict[pymunk.Shape, object] = {}

    def __len__(self) -> int:
        return len(self._shapes)

    def __contains__(self, obj: object) -> bool:
        return obj in self._shapes

    def insert(self, obj) -> pymunk.Shape:
        """Add an object's bounds as a static box shape.

        Returns:
            The created shape (already added to the space)
        """
        if obj in self._shapes:
            return self._shapes[obj]
        bb = obj.bounds
        vertices = [
            (bb.left, bb.bottom),
            (bb.right, bb.bottom),
            (bb.right, bb.top),
            (bb.left, bb.top),
        ]
        shape = pymunk.Poly(self.space.static_body, vertices)
        self.space.add(shape)
        self._shapes[obj] = shape
        self._owners[shape] = obj
        return shape

    def insert_many(self, objects: Iterable) -> None:
        for obj in objects:
            self.insert(obj)

    def remove(self, obj) -> bool:
        """Remove an object. Returns False if it was not indexed."""
        shape = self._shapes.pop(obj, None)
        if shape is None:
            return False
        del self._owners[shape]
        self.space.remove(shape)
        return True

    def clear(self) -> None:
        for obj in list(self._shapes):
            self.remove(obj)

    def query(self, left: float, right: float) -> List:
        """Objects whose bounds intersect the x-range [left, right], sorted by x."""
        bb = pymunk.BB(left, -_QUERY_HALF_HEIGHT, right, _QUERY_HALF_HEIGHT)
        return self.query_box(bb)

    def query_box(self, bb: pymunk.BB) -> List:
        """Objects whose bounds intersect ``bb``, sorted by x."""
        shapes = self.space.bb_query(bb, _QUERY_FILTER)
        found = [self._owners[s] for s in shapes if s in self._owners]
        found.sort(key=lambda o: o.bounds.left)
        return found
