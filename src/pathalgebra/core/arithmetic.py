"""Boolean operations on sets of closed Bezier paths.

Each operation follows the same pipeline:
1. Build a graph per operand, labelling every edge with its operand number
2. Collide the graphs so they only meet at points
3. Classify every edge with a predicate over the per-operand crossing counts
4. Walk the exterior edges to build the result

The operands of the two-path operations are not collided with themselves;
use path_remove_interior_points or path_remove_overlapped_points first on
inputs that overlap themselves.
"""

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum, auto

from pathalgebra.config.settings import ArithmeticConfig, FillRule, GeometryConfig
from pathalgebra.core.classify import (
    InsidePredicate,
    heal_exterior_gaps,
    set_edge_kinds_by_ray_casting,
)
from pathalgebra.core.collision import collide, self_collide
from pathalgebra.core.extract import exterior_paths
from pathalgebra.domain.graph import GraphPath
from pathalgebra.domain.path import BezierPath, PathDirection, PathLabel
from pathalgebra.exceptions import ToleranceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathCut:
    """Result of cutting one set of paths with another.

    Attributes:
        interior_path: Parts of the first paths inside the cutting paths
        exterior_path: Parts of the first paths outside the cutting paths
    """

    interior_path: list[BezierPath]
    exterior_path: list[BezierPath]


@dataclass(frozen=True)
class PathIntersection:
    """Result of a full intersection of two sets of paths.

    Attributes:
        intersecting_path: The area covered by both inputs
        exterior_paths: The first input minus the second, and the second
            input minus the first
    """

    intersecting_path: list[BezierPath]
    exterior_paths: tuple[list[BezierPath], list[BezierPath]]


class CombineOperation(Enum):
    """Kinds of node in a PathCombine expression."""

    PATH = auto()
    REMOVE_INTERIOR_POINTS = auto()
    ADD = auto()
    SUBTRACT = auto()
    INTERSECT = auto()


@dataclass(frozen=True)
class PathCombine:
    """A node of an expression combining several sets of paths.

    Leaf nodes hold paths; ADD, SUBTRACT and INTERSECT nodes hold operands
    that are evaluated first. Build nodes with the class methods:

        >>> shape = PathCombine.subtract(
        ...     PathCombine.add(PathCombine.path(a), PathCombine.path(b)),
        ...     PathCombine.path(c),
        ... )
    """

    operation: CombineOperation
    paths: tuple[BezierPath, ...] = ()
    operands: tuple["PathCombine", ...] = ()

    @classmethod
    def path(cls, paths: Iterable[BezierPath]) -> "PathCombine":
        """Leaf node evaluating to the given paths unchanged."""
        return cls(CombineOperation.PATH, paths=tuple(paths))

    @classmethod
    def remove_interior_points(cls, paths: Iterable[BezierPath]) -> "PathCombine":
        """Leaf node evaluating to the outline of the given paths."""
        return cls(CombineOperation.REMOVE_INTERIOR_POINTS, paths=tuple(paths))

    @classmethod
    def add(cls, *operands: "PathCombine") -> "PathCombine":
        """Union of all operands."""
        return cls(CombineOperation.ADD, operands=operands)

    @classmethod
    def subtract(cls, *operands: "PathCombine") -> "PathCombine":
        """First operand with every later operand removed from it."""
        return cls(CombineOperation.SUBTRACT, operands=operands)

    @classmethod
    def intersect(cls, *operands: "PathCombine") -> "PathCombine":
        """Area common to every operand."""
        return cls(CombineOperation.INTERSECT, operands=operands)


def union_predicate(fill_rule: FillRule = FillRule.EVEN_ODD) -> InsidePredicate:
    """Inside if either operand is filled."""
    return lambda counts: fill_rule.is_filled(counts[0]) or fill_rule.is_filled(counts[1])


def intersect_predicate(fill_rule: FillRule = FillRule.EVEN_ODD) -> InsidePredicate:
    """Inside if both operands are filled."""
    return lambda counts: fill_rule.is_filled(counts[0]) and fill_rule.is_filled(counts[1])


def subtract_predicate(fill_rule: FillRule = FillRule.EVEN_ODD) -> InsidePredicate:
    """Inside if the first operand is filled and the second is not."""
    return lambda counts: fill_rule.is_filled(counts[0]) and not fill_rule.is_filled(counts[1])


def any_predicate(fill_rule: FillRule = FillRule.EVEN_ODD) -> InsidePredicate:
    """Inside if any operand is filled."""
    return lambda counts: any(fill_rule.is_filled(count) for count in counts)


def _check_accuracy(operation: str, accuracy: float) -> None:
    if not (accuracy > 0.0 and math.isfinite(accuracy)):
        raise ToleranceError(operation, accuracy)


def _labeled_graph(
    paths: Iterable[BezierPath],
    path_number: int,
    config: ArithmeticConfig,
    geometry: GeometryConfig,
) -> GraphPath:
    def label(path: BezierPath) -> PathLabel:
        if config.normalize_direction:
            return PathLabel.for_path(path_number, path)
        return PathLabel(path_number, PathDirection.CLOCKWISE)

    return GraphPath.from_merged_paths(
        ((path, label(path)) for path in paths),
        geometry.close_distance,
    )


def _collided_graph(
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig,
    geometry: GeometryConfig,
) -> GraphPath:
    first = _labeled_graph(path1, 0, config, geometry)
    second = _labeled_graph(path2, 1, config, geometry)
    graph = collide(first, second, accuracy, geometry)
    graph.round(accuracy)
    logger.debug("Collided operands into %r", graph)
    return graph


def _classify_and_extract(
    graph: GraphPath,
    is_inside: InsidePredicate,
    config: ArithmeticConfig,
    geometry: GeometryConfig,
) -> list[BezierPath]:
    set_edge_kinds_by_ray_casting(graph, is_inside, geometry, config.strict)
    if config.heal_gaps:
        heal_exterior_gaps(graph)
    return exterior_paths(graph, config.strict)


def _binary_operation(
    operation: str,
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    is_inside: InsidePredicate,
    config: ArithmeticConfig,
    geometry: GeometryConfig,
) -> list[BezierPath]:
    graph = _collided_graph(path1, path2, accuracy, config, geometry)
    result = _classify_and_extract(graph, is_inside, config, geometry)
    logger.debug("%s produced %d paths", operation, len(result))
    return result


def path_add(
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Union of two sets of paths.

    Args:
        path1: First set of closed paths
        path2: Second set of closed paths
        accuracy: Distance within which points are considered the same
        config: Fill rule and consistency options
        geometry: Tolerances (defaults are used if omitted)

    Returns:
        Outline of the area covered by either input

    Raises:
        ToleranceError: If accuracy is not a positive finite number
        ConsistencyError: In strict mode, if the collided graph is inconsistent
    """
    _check_accuracy("path_add", accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    if not path1:
        return list(path2)
    if not path2:
        return list(path1)

    return _binary_operation(
        "path_add", path1, path2, accuracy, union_predicate(config.fill_rule), config, geometry
    )


def path_sub(
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Remove the area of the second set of paths from the first.

    Args:
        path1: Paths to subtract from
        path2: Paths to subtract
        accuracy: Distance within which points are considered the same
        config: Fill rule and consistency options
        geometry: Tolerances (defaults are used if omitted)

    Returns:
        Outline of the area covered by path1 but not path2
    """
    _check_accuracy("path_sub", accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    if not path1:
        return []
    if not path2:
        return list(path1)

    return _binary_operation(
        "path_sub", path1, path2, accuracy, subtract_predicate(config.fill_rule), config, geometry
    )


def path_intersect(
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Area common to two sets of paths.

    Args:
        path1: First set of closed paths
        path2: Second set of closed paths
        accuracy: Distance within which points are considered the same
        config: Fill rule and consistency options
        geometry: Tolerances (defaults are used if omitted)

    Returns:
        Outline of the area covered by both inputs
    """
    _check_accuracy("path_intersect", accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    if not path1 or not path2:
        return []

    return _binary_operation(
        "path_intersect",
        path1,
        path2,
        accuracy,
        intersect_predicate(config.fill_rule),
        config,
        geometry,
    )


def path_cut(
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> PathCut:
    """Cut one set of paths into the parts inside and outside another.

    The operands are collided once; the graph is classified for the
    intersection, reset, and classified again for the subtraction.

    Args:
        path1: Paths to cut
        path2: Cutting paths
        accuracy: Distance within which points are considered the same
        config: Fill rule and consistency options
        geometry: Tolerances (defaults are used if omitted)

    Returns:
        PathCut with the parts of path1 inside and outside path2
    """
    _check_accuracy("path_cut", accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    if not path1:
        return PathCut(interior_path=[], exterior_path=[])
    if not path2:
        return PathCut(interior_path=[], exterior_path=list(path1))

    graph = _collided_graph(path1, path2, accuracy, config, geometry)
    interior = _classify_and_extract(graph, intersect_predicate(config.fill_rule), config, geometry)

    graph.reset_edge_kinds()
    exterior = _classify_and_extract(graph, subtract_predicate(config.fill_rule), config, geometry)

    return PathCut(interior_path=interior, exterior_path=exterior)


def path_full_intersect(
    path1: Sequence[BezierPath],
    path2: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> PathIntersection:
    """Intersect two sets of paths, keeping the parts outside the intersection too.

    The second exterior result is computed from a fresh graph with the
    operands swapped, so edges shared by both inputs end up on the right
    side.

    Returns:
        PathIntersection with the common area and each input minus the other
    """
    _check_accuracy("path_full_intersect", accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    if not path1:
        return PathIntersection(intersecting_path=[], exterior_paths=([], list(path2)))
    if not path2:
        return PathIntersection(intersecting_path=[], exterior_paths=(list(path1), []))

    graph = _collided_graph(path1, path2, accuracy, config, geometry)
    intersecting = _classify_and_extract(
        graph, intersect_predicate(config.fill_rule), config, geometry
    )

    graph.reset_edge_kinds()
    first_only = _classify_and_extract(graph, subtract_predicate(config.fill_rule), config, geometry)

    swapped = _collided_graph(path2, path1, accuracy, config, geometry)
    second_only = _classify_and_extract(
        swapped, subtract_predicate(config.fill_rule), config, geometry
    )

    return PathIntersection(intersecting_path=intersecting, exterior_paths=(first_only, second_only))


def path_add_chain(
    paths: Sequence[Sequence[BezierPath]],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Union of any number of sets of paths in a single classification pass.

    Each set is collided onto the result of the previous ones and keeps its
    own path number, so a set is not collided with itself.

    Args:
        paths: Sets of closed paths to combine
        accuracy: Distance within which points are considered the same
        config: Fill rule and consistency options
        geometry: Tolerances (defaults are used if omitted)

    Returns:
        Outline of the area covered by any of the sets
    """
    _check_accuracy("path_add_chain", accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    graph = GraphPath()
    for path_number, path_set in enumerate(paths):
        labeled = _labeled_graph(path_set, path_number, config, geometry)
        graph = collide(graph, labeled, accuracy, geometry)
    if graph.num_edges() == 0:
        return []

    graph.round(accuracy)
    return _classify_and_extract(graph, any_predicate(config.fill_rule), config, geometry)


def _self_operation(
    operation: str,
    paths: Sequence[BezierPath],
    accuracy: float,
    is_inside: InsidePredicate,
    config: ArithmeticConfig | None,
    geometry: GeometryConfig | None,
) -> list[BezierPath]:
    _check_accuracy(operation, accuracy)
    config = config or ArithmeticConfig()
    geometry = geometry or GeometryConfig()

    graph = _labeled_graph(paths, 0, config, geometry)
    if graph.num_edges() == 0:
        return []

    self_collide(graph, accuracy, geometry)
    graph.round(accuracy)
    return _classify_and_extract(graph, is_inside, config, geometry)


def path_remove_interior_points(
    paths: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Outline of a set of paths with every interior edge removed.

    Any point with a non-zero winding number is inside, whatever the
    configured fill rule. By default each path counts as filled inside
    whatever its direction; set normalize_direction to False in the config
    to use the winding of the input as given, so that paths running the
    opposite way to their surroundings (such as the counters of a glyph)
    stay holes.
    """
    return _self_operation(
        "path_remove_interior_points",
        paths,
        accuracy,
        lambda counts: counts[0] != 0,
        config,
        geometry,
    )


def path_remove_overlapped_points(
    paths: Sequence[BezierPath],
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Split a set of paths at its self-intersections using the even-odd rule.

    Areas covered an even number of times become holes.
    """
    return _self_operation(
        "path_remove_overlapped_points",
        paths,
        accuracy,
        lambda counts: counts[0] % 2 != 0,
        config,
        geometry,
    )


def _fold(
    operands: tuple[PathCombine, ...],
    operation: Callable[..., list[BezierPath]],
    accuracy: float,
    config: ArithmeticConfig | None,
    geometry: GeometryConfig | None,
) -> list[BezierPath]:
    if not operands:
        return []

    result = path_combine(operands[0], accuracy, config, geometry)
    for operand in operands[1:]:
        result = operation(
            result, path_combine(operand, accuracy, config, geometry), accuracy, config, geometry
        )
    return result


def path_combine(
    operation: PathCombine,
    accuracy: float,
    config: ArithmeticConfig | None = None,
    geometry: GeometryConfig | None = None,
) -> list[BezierPath]:
    """Evaluate a PathCombine expression.

    Args:
        operation: Root of the expression
        accuracy: Distance within which points are considered the same
        config: Fill rule and consistency options
        geometry: Tolerances (defaults are used if omitted)

    Returns:
        The paths the expression evaluates to
    """
    kind = operation.operation
    if kind == CombineOperation.PATH:
        return list(operation.paths)
    if kind == CombineOperation.REMOVE_INTERIOR_POINTS:
        return path_remove_interior_points(operation.paths, accuracy, config, geometry)
    if kind == CombineOperation.ADD:
        operands = [path_combine(op, accuracy, config, geometry) for op in operation.operands]
        return path_add_chain(operands, accuracy, config, geometry)
    if kind == CombineOperation.SUBTRACT:
        return _fold(operation.operands, path_sub, accuracy, config, geometry)
    if kind == CombineOperation.INTERSECT:
        return _fold(operation.operands, path_intersect, accuracy, config, geometry)

    raise ValueError(f"Unknown combine operation: {kind}")
