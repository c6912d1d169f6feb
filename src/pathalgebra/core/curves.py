"""Cubic Bezier curve operations used by the path graph.

A curve is a tuple of four Coords (start, cp1, cp2, end). This module
supplies everything the graph algorithms need from a curve:
- Evaluation, tangents and normals
- Bounding boxes and subdivision (via fontTools.misc.bezierTools)
- Curve/curve, curve/ray and self intersections

Intersections between straight segments are computed exactly. A curve
against a straight segment reduces to a cubic root solve; two true curves
are intersected by recursive bounding-box subdivision followed by Newton
refinement.
"""

import math

from fontTools.misc.bezierTools import calcCubicBounds, solveCubic, splitCubicAtT

from pathalgebra.domain.coord import Coord

Curve = tuple[Coord, Coord, Coord, Coord]

# Parameter slack accepted when a root lands just outside [0, 1]
T_EPSILON = 1e-9

_MAX_SUBDIVISION_DEPTH = 40
_MAX_SUBDIVISION_LEAVES = 256
_NEWTON_ITERATIONS = 12


def point_at(curve: Curve, t: float) -> Coord:
    """Evaluate a curve at parameter t.

    Examples:
        >>> line = (Coord(0, 0), Coord(1, 0), Coord(2, 0), Coord(3, 0))
        >>> point_at(line, 0.5)
        Coord(x=1.5, y=0.0)
    """
    p0, p1, p2, p3 = curve
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3.0 * mt * mt * t
    c = 3.0 * mt * t * t
    d = t * t * t
    return Coord(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def derivative_at(curve: Curve, t: float) -> Coord:
    """First derivative of a curve at parameter t."""
    p0, p1, p2, p3 = curve
    mt = 1.0 - t
    a = 3.0 * mt * mt
    b = 6.0 * mt * t
    c = 3.0 * t * t
    return Coord(
        a * (p1.x - p0.x) + b * (p2.x - p1.x) + c * (p3.x - p2.x),
        a * (p1.y - p0.y) + b * (p2.y - p1.y) + c * (p3.y - p2.y),
    )


def second_derivative_at(curve: Curve, t: float) -> Coord:
    """Second derivative of a curve at parameter t."""
    p0, p1, p2, p3 = curve
    mt = 1.0 - t
    return Coord(
        6.0 * (mt * (p2.x - 2.0 * p1.x + p0.x) + t * (p3.x - 2.0 * p2.x + p1.x)),
        6.0 * (mt * (p2.y - 2.0 * p1.y + p0.y) + t * (p3.y - 2.0 * p2.y + p1.y)),
    )


def tangent_at(curve: Curve, t: float) -> Coord:
    """Direction of travel along a curve at parameter t.

    Where the derivative vanishes (a control point sitting on an end
    point), the direction is taken from the second derivative, and failing
    that from the chord.
    """
    tangent = derivative_at(curve, t)
    if tangent.length() > 1e-12:
        return tangent

    second = second_derivative_at(curve, t)
    if second.length() > 1e-12:
        return second if t < 0.5 else -second

    return curve[3] - curve[0]


def normal_at(curve: Curve, t: float) -> Coord:
    """Left-hand normal of a curve at parameter t (tangent rotated 90 degrees)."""
    tangent = tangent_at(curve, t)
    return Coord(-tangent.y, tangent.x)


def bounding_box(curve: Curve) -> tuple[float, float, float, float]:
    """Tight bounds of a curve as (min_x, min_y, max_x, max_y)."""
    return calcCubicBounds(*curve)


def subdivide(curve: Curve, t: float) -> tuple[Curve, Curve]:
    """Split a curve in two at parameter t.

    The outer end points are kept exactly; the shared middle point is the
    curve position at t.
    """
    (_, a1, a2, _), (_, b1, b2, _) = splitCubicAtT(*curve, t)
    middle = point_at(curve, t)
    return (
        (curve[0], Coord(*a1), Coord(*a2), middle),
        (middle, Coord(*b1), Coord(*b2), curve[3]),
    )


def is_line_like(curve: Curve, small_distance: float) -> bool:
    """Check if a curve is a straight segment between its end points.

    Both control points must lie within small_distance of the chord and
    project inside it.
    """
    p0, p1, p2, p3 = curve
    chord = p3 - p0
    length = chord.length()
    if length <= small_distance:
        return p1.is_near_to(p0, small_distance) and p2.is_near_to(p0, small_distance)

    for cp in (p1, p2):
        offset = cp - p0
        if abs(chord.cross(offset)) / length > small_distance:
            return False
        along = chord.dot(offset) / (length * length)
        if along < -T_EPSILON or along > 1.0 + T_EPSILON:
            return False
    return True


def _power_coefficients(curve: Curve) -> tuple[Coord, Coord, Coord, Coord]:
    """Coefficients (a, b, c, d) of a*t^3 + b*t^2 + c*t + d."""
    p0, p1, p2, p3 = curve
    a = Coord(-p0.x + 3.0 * p1.x - 3.0 * p2.x + p3.x, -p0.y + 3.0 * p1.y - 3.0 * p2.y + p3.y)
    b = Coord(3.0 * p0.x - 6.0 * p1.x + 3.0 * p2.x, 3.0 * p0.y - 6.0 * p1.y + 3.0 * p2.y)
    c = Coord(-3.0 * p0.x + 3.0 * p1.x, -3.0 * p0.y + 3.0 * p1.y)
    return a, b, c, p0


def _roots_in_unit_interval(a: float, b: float, c: float, d: float) -> list[float]:
    """Real roots of a cubic in [0, 1], polished and deduplicated.

    fontTools rounds some roots, so each is refined with a few Newton steps.
    """
    roots = []
    for root in solveCubic(a, b, c, d):
        t = float(root)
        for _ in range(4):
            value = ((a * t + b) * t + c) * t + d
            slope = (3.0 * a * t + 2.0 * b) * t + c
            if slope == 0.0:
                break
            step = value / slope
            if abs(step) > 1e-3:
                break
            t -= step

        if -1e-6 <= t <= 1.0 + 1e-6:
            t = min(max(t, 0.0), 1.0)
            if not any(abs(t - existing) < T_EPSILON for existing in roots):
                roots.append(t)

    return sorted(roots)


def curve_intersects_ray(
    curve: Curve,
    ray_start: Coord,
    ray_end: Coord,
) -> list[tuple[float, float, Coord]]:
    """Intersect a curve with the infinite line through two points.

    Args:
        curve: Curve to test
        ray_start: First point on the line (ray parameter 0)
        ray_end: Second point on the line (ray parameter 1)

    Returns:
        (curve t, ray t, position) for every crossing, ordered by curve t.
        A curve lying along the line reports nothing.
    """
    direction = ray_end - ray_start
    length_squared = direction.dot(direction)
    if length_squared == 0.0:
        return []

    normal = Coord(-direction.y, direction.x) * (1.0 / math.sqrt(length_squared))
    a, b, c, d = _power_coefficients(curve)
    roots = _roots_in_unit_interval(
        normal.dot(a),
        normal.dot(b),
        normal.dot(c),
        normal.dot(d - ray_start),
    )

    hits = []
    for t in roots:
        position = point_at(curve, t)
        ray_t = (position - ray_start).dot(direction) / length_squared
        hits.append((t, ray_t, position))
    return hits


def nearest_t(curve: Curve, point: Coord) -> float:
    """Parameter of the point on a curve nearest to another point.

    Coarse sampling picks a starting parameter that is then refined with
    Newton's method on the distance derivative.
    """
    best_t = 0.0
    best_distance = math.inf
    samples = 32
    for i in range(samples + 1):
        t = i / samples
        distance = point_at(curve, t).distance_to(point)
        if distance < best_distance:
            best_t, best_distance = t, distance

    t = best_t
    for _ in range(_NEWTON_ITERATIONS):
        offset = point_at(curve, t) - point
        d1 = derivative_at(curve, t)
        d2 = second_derivative_at(curve, t)
        numerator = offset.dot(d1)
        denominator = d1.dot(d1) + offset.dot(d2)
        if denominator == 0.0:
            break
        t = min(max(t - numerator / denominator, 0.0), 1.0)

    if point_at(curve, t).distance_to(point) > best_distance:
        return best_t
    return t


def _line_t_to_curve_t(curve: Curve, fraction: float) -> float:
    """Map a fraction along the chord of a line-like curve to the curve parameter."""
    p0, _, _, p3 = curve
    chord = p3 - p0
    length_squared = chord.dot(chord)
    if length_squared == 0.0:
        return fraction

    a, b, c, _ = _power_coefficients(curve)
    roots = _roots_in_unit_interval(
        chord.dot(a) / length_squared,
        chord.dot(b) / length_squared,
        chord.dot(c) / length_squared,
        -fraction,
    )
    if not roots:
        return min(max(fraction, 0.0), 1.0)
    return min(roots, key=lambda t: abs(t - fraction))


def _line_intersects_line(
    curve1: Curve,
    curve2: Curve,
    small_distance: float,
) -> list[tuple[float, float]]:
    """Exact intersection of two line-like curves.

    Collinear, overlapping segments report the two ends of the overlap.
    """
    p, q = curve1[0], curve2[0]
    r = curve1[3] - p
    s = curve2[3] - q
    r_len, s_len = r.length(), s.length()
    if r_len == 0.0 or s_len == 0.0:
        return []

    denominator = r.cross(s)
    if abs(denominator) <= 1e-12 * r_len * s_len:
        return _collinear_overlap(curve1, curve2, small_distance)

    offset = q - p
    u = offset.cross(s) / denominator
    v = offset.cross(r) / denominator
    if u < -T_EPSILON or u > 1.0 + T_EPSILON or v < -T_EPSILON or v > 1.0 + T_EPSILON:
        return []

    u = min(max(u, 0.0), 1.0)
    v = min(max(v, 0.0), 1.0)
    return [(_line_t_to_curve_t(curve1, u), _line_t_to_curve_t(curve2, v))]


def _collinear_overlap(
    curve1: Curve,
    curve2: Curve,
    small_distance: float,
) -> list[tuple[float, float]]:
    p, q = curve1[0], curve2[0]
    r = curve1[3] - p
    s = curve2[3] - q
    r_len_sq = r.dot(r)
    s_len_sq = s.dot(s)

    if abs(r.cross(q - p)) / math.sqrt(r_len_sq) > small_distance:
        return []

    q0 = (curve2[0] - p).dot(r) / r_len_sq
    q1 = (curve2[3] - p).dot(r) / r_len_sq
    low = max(0.0, min(q0, q1))
    high = min(1.0, max(q0, q1))
    if high < low - T_EPSILON:
        return []

    fractions = [low] if high - low <= T_EPSILON else [low, high]
    result = []
    for u in fractions:
        position = p + r * u
        v = min(max((position - q).dot(s) / s_len_sq, 0.0), 1.0)
        result.append((_line_t_to_curve_t(curve1, u), _line_t_to_curve_t(curve2, v)))
    return result


def _line_intersects_curve(
    line: Curve,
    curve: Curve,
) -> list[tuple[float, float]]:
    """Intersections of a line-like curve with a general curve, as (line t, curve t)."""
    result = []
    for curve_t, line_fraction, _ in curve_intersects_ray(curve, line[0], line[3]):
        if -T_EPSILON <= line_fraction <= 1.0 + T_EPSILON:
            line_fraction = min(max(line_fraction, 0.0), 1.0)
            result.append((_line_t_to_curve_t(line, line_fraction), curve_t))
    return result


def _boxes_overlap(
    box1: tuple[float, float, float, float],
    box2: tuple[float, float, float, float],
    slack: float,
) -> bool:
    return not (
        box1[2] + slack < box2[0]
        or box2[2] + slack < box1[0]
        or box1[3] + slack < box2[1]
        or box2[3] + slack < box1[1]
    )


def _refine(curve1: Curve, curve2: Curve, t1: float, t2: float) -> tuple[float, float]:
    """Newton iteration on curve1(t1) - curve2(t2) = 0."""
    for _ in range(_NEWTON_ITERATIONS):
        difference = point_at(curve1, t1) - point_at(curve2, t2)
        if difference.length() < 1e-12:
            break
        d1 = derivative_at(curve1, t1)
        d2 = derivative_at(curve2, t2)
        determinant = -d1.x * d2.y + d2.x * d1.y
        if abs(determinant) < 1e-14:
            break
        # Solve [d1, -d2] * (dt1, dt2) = -difference
        dt1 = (-difference.x * -d2.y - -d2.x * -difference.y) / determinant
        dt2 = (d1.x * -difference.y - d1.y * -difference.x) / determinant
        t1 = min(max(t1 + dt1, 0.0), 1.0)
        t2 = min(max(t2 + dt2, 0.0), 1.0)
    return t1, t2


def _subdivide_intersections(
    curve1: Curve,
    curve2: Curve,
    accuracy: float,
) -> list[tuple[float, float]] | None:
    """Find curve/curve intersections by recursive bounding-box subdivision.

    Returns None if the search produced too many candidate regions, which
    happens when the curves run along each other.
    """
    candidates: list[tuple[float, float]] = []
    stack = [(curve1, 0.0, 1.0, curve2, 0.0, 1.0, 0)]
    slack = accuracy * 1e-3

    while stack:
        c1, lo1, hi1, c2, lo2, hi2, depth = stack.pop()
        box1 = bounding_box(c1)
        box2 = bounding_box(c2)
        if not _boxes_overlap(box1, box2, slack):
            continue

        size1 = max(box1[2] - box1[0], box1[3] - box1[1])
        size2 = max(box2[2] - box2[0], box2[3] - box2[1])
        if (size1 <= accuracy and size2 <= accuracy) or depth >= _MAX_SUBDIVISION_DEPTH:
            candidates.append(((lo1 + hi1) / 2.0, (lo2 + hi2) / 2.0))
            if len(candidates) > _MAX_SUBDIVISION_LEAVES:
                return None
            continue

        if size1 >= size2:
            mid = (lo1 + hi1) / 2.0
            left, right = subdivide(c1, 0.5)
            stack.append((left, lo1, mid, c2, lo2, hi2, depth + 1))
            stack.append((right, mid, hi1, c2, lo2, hi2, depth + 1))
        else:
            mid = (lo2 + hi2) / 2.0
            left, right = subdivide(c2, 0.5)
            stack.append((c1, lo1, hi1, left, lo2, mid, depth + 1))
            stack.append((c1, lo1, hi1, right, mid, hi2, depth + 1))

    results: list[tuple[float, float]] = []
    positions: list[Coord] = []
    for t1, t2 in sorted(candidates):
        t1, t2 = _refine(curve1, curve2, t1, t2)
        position = point_at(curve1, t1)
        if position.distance_to(point_at(curve2, t2)) > accuracy:
            continue
        if any(position.is_near_to(existing, accuracy) for existing in positions):
            continue
        positions.append(position)
        results.append((t1, t2))

    return results


def _coincident_intersections(
    curve1: Curve,
    curve2: Curve,
    accuracy: float,
) -> list[tuple[float, float]]:
    """End points of the shared section of two curves that lie on top of each other."""
    pairs: list[tuple[float, float]] = []
    for t1 in (0.0, 1.0):
        point = point_at(curve1, t1)
        t2 = nearest_t(curve2, point)
        if point_at(curve2, t2).is_near_to(point, accuracy):
            pairs.append((t1, t2))
    for t2 in (0.0, 1.0):
        point = point_at(curve2, t2)
        t1 = nearest_t(curve1, point)
        if point_at(curve1, t1).is_near_to(point, accuracy):
            pairs.append((t1, t2))

    unique: list[tuple[float, float]] = []
    for pair in sorted(pairs):
        if not any(abs(pair[0] - other[0]) < T_EPSILON for other in unique):
            unique.append(pair)
    return unique


def curve_intersects_curve(
    curve1: Curve,
    curve2: Curve,
    accuracy: float,
    small_distance: float = 0.001,
) -> list[tuple[float, float]]:
    """Find the parameters where two curves meet.

    Args:
        curve1: First curve
        curve2: Second curve
        accuracy: Maximum distance between the curves at a reported meeting
        small_distance: Tolerance for treating a curve as a straight line

    Returns:
        (t1, t2) pairs ordered by t1. Curves that overlap report the ends of
        the overlapping section.
    """
    if not _boxes_overlap(bounding_box(curve1), bounding_box(curve2), accuracy * 1e-3):
        return []

    line1 = is_line_like(curve1, small_distance)
    line2 = is_line_like(curve2, small_distance)

    if line1 and line2:
        return sorted(_line_intersects_line(curve1, curve2, small_distance))
    if line1:
        return sorted(_line_intersects_curve(curve1, curve2))
    if line2:
        return sorted((t1, t2) for t2, t1 in _line_intersects_curve(curve2, curve1))

    found = _subdivide_intersections(curve1, curve2, accuracy)
    if found is None:
        found = _coincident_intersections(curve1, curve2, accuracy)
    return sorted(found)


def find_self_intersection(curve: Curve, accuracy: float) -> tuple[float, float] | None:
    """Find where a looping cubic crosses itself.

    Writing the curve as a*t^3 + b*t^2 + c*t + d, a crossing at s != t
    satisfies a*(s^2 + s*t + t^2) + b*(s + t) + c = 0. Substituting
    u = s + t and v = s*t leaves a linear equation for u and then v.

    Returns:
        (t1, t2) with t1 < t2, or None if the curve has no loop
    """
    a, b, c, _ = _power_coefficients(curve)
    cross_ab = a.cross(b)
    if abs(cross_ab) < 1e-12:
        return None

    a_len_sq = a.dot(a)
    if a_len_sq < 1e-12:
        return None

    u = -a.cross(c) / cross_ab
    v = u * u + a.dot(b * u + c) / a_len_sq
    discriminant = u * u - 4.0 * v
    if discriminant <= 0.0:
        return None

    root = math.sqrt(discriminant)
    t1 = (u - root) / 2.0
    t2 = (u + root) / 2.0
    if t1 < 0.0 or t2 > 1.0:
        return None
    if point_at(curve, t1).distance_to(point_at(curve, t2)) > accuracy:
        return None
    return (t1, t2)
