"""Sugiyama-style layered layout for one connected component.

Phases:
  1. Cycle removal (greedy-FAS)
  2. Layer assignment (longest path from sources)
  3. Dummy node insertion
  4. Crossing minimization (barycenter)
  5. Perpendicular coordinates (barycenter sweeps, order-preserving least squares)
  6. Primary coordinates (one band per layer)

Coordinates here are abstract: "primary" runs along the rank axis and
"perpendicular" across it. ``flow_groups.layout.engine`` maps them onto
x/y for the requested direction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import networkx as nx

from flow_groups.layout.types import DUMMY_PREFIX

logger = logging.getLogger(__name__)

ClusterKey = tuple[str, int]


# ─── Cycle Removal (Greedy-FAS) ─────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Order nodes so that few edges point backwards (Eades-Lin-Smyth heuristic).

    Sinks are peeled to the tail and sources to the head; when neither
    exists the node with the largest out-minus-in degree goes to the head.
    Ties are broken by graph insertion order so the result is reproducible.
    """
    active: dict[str, None] = dict.fromkeys(graph.nodes)
    out_deg: dict[str, int] = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg: dict[str, int] = {n: graph.in_degree(n) for n in graph.nodes}
    head: list[str] = []
    tail: list[str] = []

    def drop(node: str) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        progressed = True
        while progressed:
            progressed = False
            for sink in [n for n in active if out_deg[n] == 0]:
                drop(sink)
                tail.append(sink)
                progressed = True
            for source in [n for n in active if in_deg[n] == 0]:
                drop(source)
                head.append(source)
                progressed = True
        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            drop(best)
            head.append(best)

    tail.reverse()
    return head + tail


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Return an acyclic copy of ``graph`` and the set of original edges that were flipped."""
    if graph.number_of_nodes() == 0:
        return graph.copy(), set()

    rank = {node: i for i, node in enumerate(greedy_fas_ordering(graph))}
    reversed_edges: set[tuple[str, str]] = set()

    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes(data=True))
    for src, tgt, attrs in graph.edges(data=True):
        if src == tgt:
            reversed_edges.add((src, tgt))
            continue
        if rank[src] > rank[tgt]:
            reversed_edges.add((src, tgt))
            dag.add_edge(tgt, src, **attrs)
        else:
            dag.add_edge(src, tgt, **attrs)
    return dag, reversed_edges


# ─── Layer Assignment ────────────────────────────────────────────────────────


class LayerAssignment:
    """Longest-path ranks: sources sit on layer 0, every edge points to a later layer."""

    def __init__(self, layers: dict[str, int], layer_count: int, reversed_edges: set[tuple[str, str]]) -> None:
        self.layers = layers
        self.layer_count = layer_count
        self.reversed_edges = reversed_edges

    @classmethod
    def assign(cls, graph: nx.DiGraph) -> LayerAssignment:
        dag, reversed_edges = remove_cycles(graph)
        return cls.from_dag(dag, reversed_edges)

    @classmethod
    def from_dag(cls, dag: nx.DiGraph, reversed_edges: set[tuple[str, str]]) -> LayerAssignment:
        layers: dict[str, int] = {}
        for node in nx.topological_sort(dag):
            layers[node] = max((layers[p] + 1 for p in dag.predecessors(node)), default=0)
        layer_count = (max(layers.values()) + 1) if layers else 0
        return cls(layers=layers, layer_count=layer_count, reversed_edges=reversed_edges)


# ─── Dummy Node Insertion ────────────────────────────────────────────────────


@dataclass
class DummyEdge:
    original_src: str
    original_tgt: str
    dummy_ids: list[str]


@dataclass
class AugmentedGraph:
    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_edges: list[DummyEdge] = field(default_factory=list)


def insert_dummy_nodes(dag: nx.DiGraph, la: LayerAssignment) -> AugmentedGraph:
    """Split every edge spanning more than one layer into a chain of dummy nodes."""
    g: nx.DiGraph = nx.DiGraph()
    g.add_nodes_from(dag.nodes(data=True))
    layers = dict(la.layers)
    dummy_edges: list[DummyEdge] = []

    for src, tgt in list(dag.edges()):
        span = layers[tgt] - layers[src]
        if span <= 1:
            g.add_edge(src, tgt)
            continue

        chain: list[str] = []
        prev = src
        for step in range(1, span):
            dummy_id = f"{DUMMY_PREFIX}{len(dummy_edges)}_{step - 1}"
            g.add_node(dummy_id, dummy=True)
            layers[dummy_id] = layers[src] + step
            g.add_edge(prev, dummy_id)
            chain.append(dummy_id)
            prev = dummy_id
        g.add_edge(prev, tgt)
        dummy_edges.append(DummyEdge(original_src=src, original_tgt=tgt, dummy_ids=chain))

    layer_count = (max(layers.values()) + 1) if layers else 0
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_edges=dummy_edges)


def is_dummy(node_id: str) -> bool:
    return node_id.startswith(DUMMY_PREFIX)


# ─── Crossing Minimization ───────────────────────────────────────────────────


def initial_ordering(aug: AugmentedGraph, order_key: Mapping[str, tuple]) -> list[list[str]]:
    """Bucket nodes by layer, sorted by ``order_key`` so same-group nodes start contiguous.

    Dummies sort with the source of the edge they belong to.
    """
    dummy_owner: dict[str, str] = {}
    for de in aug.dummy_edges:
        for dummy_id in de.dummy_ids:
            dummy_owner[dummy_id] = de.original_src

    def key(node_id: str) -> tuple:
        owner = dummy_owner.get(node_id, node_id)
        return (*order_key.get(owner, ("", 0)), node_id in dummy_owner)

    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id in sorted(aug.layers, key=key):
        ordering[aug.layers[node_id]].append(node_id)
    return ordering


def minimise_crossings(aug: AugmentedGraph, ordering: list[list[str]], max_passes: int = 24) -> list[list[str]]:
    """Reorder layers by neighbour barycenters, keeping the best ordering seen."""
    best = [list(layer) for layer in ordering]
    best_count = count_crossings(best, aug.graph)
    current = [list(layer) for layer in ordering]

    for _pass in range(max_passes):
        if best_count == 0:
            break
        for idx in range(1, len(current)):
            _sort_by_barycenter(current[idx], current[idx - 1], aug.graph.predecessors)
        for idx in range(len(current) - 2, -1, -1):
            _sort_by_barycenter(current[idx], current[idx + 1], aug.graph.successors)

        crossings = count_crossings(current, aug.graph)
        if crossings >= best_count:
            break
        best_count = crossings
        best = [list(layer) for layer in current]

    return best


def _sort_by_barycenter(
    layer: list[str],
    fixed: Sequence[str],
    neighbours: Callable[[str], Iterable[str]],
) -> None:
    fixed_pos = {nid: float(i) for i, nid in enumerate(fixed)}
    keys: dict[str, float] = {}
    for i, node_id in enumerate(layer):
        positions = [fixed_pos[nb] for nb in neighbours(node_id) if nb in fixed_pos]
        # Nodes without neighbours in the fixed layer hold their slot.
        keys[node_id] = sum(positions) / len(positions) if positions else float(i)
    layer.sort(key=lambda nid: keys[nid])


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        segments: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            for nb in graph.successors(src_id):
                if nb in tgt_pos:
                    segments.append((sp, tgt_pos[nb]))
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (a0, a1), (b0, b1) = segments[i], segments[j]
                if (a0 - b0) * (a1 - b1) < 0:
                    total += 1
    return total


# ─── Group Depth Map ─────────────────────────────────────────────────────────


def build_group_depth_map(layers: Mapping[str, int], parent_of: Mapping[str, str | None]) -> dict[str, int]:
    """Depth of each grouped node relative to the shallowest member of its group.

    Depth comes from the node's rank in this layout. A member whose only
    incoming edge crosses the group boundary keeps the rank that edge gave
    it instead of being treated as a group root.
    """
    group_min: dict[str, int] = {}
    for node_id, layer in layers.items():
        parent = parent_of.get(node_id)
        if parent is None:
            continue
        group_min[parent] = min(group_min.get(parent, layer), layer)

    depths: dict[str, int] = {}
    for node_id, layer in layers.items():
        parent = parent_of.get(node_id)
        if parent is not None:
            depths[node_id] = layer - group_min[parent]
    return depths


# ─── Coordinate Assignment ───────────────────────────────────────────────────


def place_in_order(desired: Sequence[float], gaps: Sequence[float]) -> list[float]:
    """Positions closest (least squares) to ``desired`` that keep order and minimum gaps.

    Solves ``min sum (x_i - d_i)^2`` subject to ``x_{i+1} - x_i >= gaps[i]``.
    Subtracting the cumulative gaps turns this into isotonic regression,
    solved with pool-adjacent-violators.
    """
    offsets: list[float] = [0.0]
    for g in gaps:
        offsets.append(offsets[-1] + g)

    blocks: list[list[float]] = []  # [sum, count]
    for d, off in zip(desired, offsets):
        blocks.append([d - off, 1.0])
        while len(blocks) > 1 and blocks[-2][0] / blocks[-2][1] > blocks[-1][0] / blocks[-1][1]:
            total, count = blocks.pop()
            blocks[-1][0] += total
            blocks[-1][1] += count

    result: list[float] = []
    for total, count in blocks:
        result.extend([total / count] * int(count))
    return [y + off for y, off in zip(result, offsets)]


def assign_perpendicular(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    perp_size: Mapping[str, float],
    cluster: Mapping[str, ClusterKey],
    node_sep: float,
    member_gap: float,
    passes: int,
) -> dict[str, float]:
    """Centre coordinate across the rank axis for every node, dummies included.

    Each sweep pulls nodes towards the mean of their neighbours in the
    adjacent layer. The run ends with a downward sweep, so a node whose
    only parent is ``P`` lands exactly on ``P`` when its layer leaves room.
    Consecutive members of the same group at the same depth are packed at
    ``member_gap``; everything else keeps ``node_sep`` between borders.
    """

    def gap(a: str, b: str) -> float:
        half = (perp_size.get(a, 0.0) + perp_size.get(b, 0.0)) / 2
        ka, kb = cluster.get(a), cluster.get(b)
        if ka is not None and ka == kb:
            return max(member_gap, half)
        return half + node_sep

    pos: dict[str, float] = {}
    for layer in ordering:
        gaps = [gap(a, b) for a, b in zip(layer, layer[1:])]
        pos.update(zip(layer, place_in_order([0.0] * len(layer), gaps)))

    def relax(layer: list[str], neighbours: Callable[[str], Iterable[str]]) -> None:
        desired: list[float] = []
        for node_id in layer:
            around = [pos[nb] for nb in neighbours(node_id) if nb in pos]
            desired.append(sum(around) / len(around) if around else pos[node_id])
        gaps = [gap(a, b) for a, b in zip(layer, layer[1:])]
        pos.update(zip(layer, place_in_order(desired, gaps)))

    for _ in range(passes):
        for idx in range(1, len(ordering)):
            relax(ordering[idx], aug.graph.predecessors)
        for idx in range(len(ordering) - 2, -1, -1):
            relax(ordering[idx], aug.graph.successors)
    for idx in range(1, len(ordering)):
        relax(ordering[idx], aug.graph.predecessors)

    return pos


def assign_primary(ordering: list[list[str]], prim_size: Mapping[str, float], rank_sep: float) -> list[float]:
    """Centre coordinate of each layer band along the rank axis."""
    centers: list[float] = []
    cursor = 0.0
    for layer in ordering:
        thickness = max((prim_size.get(n, 0.0) for n in layer), default=0.0)
        centers.append(cursor + thickness / 2)
        cursor += thickness + rank_sep
    return centers


# ─── Component Layout ────────────────────────────────────────────────────────


@dataclass
class ComponentLayout:
    """Abstract coordinates of one component, before direction mapping."""

    layers: dict[str, int]
    orders: dict[str, int]
    primary: dict[str, float]
    perpendicular: dict[str, float]
    group_depths: dict[str, int]
    reversed_edges: set[tuple[str, str]]


class SugiyamaLayout:
    """Layered layout engine for a single connected component."""

    def __init__(
        self,
        rank_sep: float,
        node_sep: float,
        member_gap: float,
        crossing_passes: int = 24,
        coordinate_passes: int = 8,
    ) -> None:
        self.rank_sep = rank_sep
        self.node_sep = node_sep
        self.member_gap = member_gap
        self.crossing_passes = crossing_passes
        self.coordinate_passes = coordinate_passes

    def layout(
        self,
        graph: nx.DiGraph,
        prim_size: Mapping[str, float],
        perp_size: Mapping[str, float],
        parent_of: Mapping[str, str | None],
        order_key: Mapping[str, tuple],
    ) -> ComponentLayout:
        dag, reversed_edges = remove_cycles(graph)
        la = LayerAssignment.from_dag(dag, reversed_edges)
        aug = insert_dummy_nodes(dag, la)
        if la.reversed_edges:
            logger.debug("reversed %d edges to break cycles", len(la.reversed_edges))

        real_layers = {n: la.layers[n] for n in graph.nodes}
        depths = build_group_depth_map(real_layers, parent_of)
        cluster: dict[str, ClusterKey] = {
            n: (parent, depths[n]) for n in graph.nodes if (parent := parent_of.get(n)) is not None
        }

        ordering = minimise_crossings(aug, initial_ordering(aug, order_key), self.crossing_passes)
        perpendicular = assign_perpendicular(
            ordering, aug, perp_size, cluster, self.node_sep, self.member_gap, self.coordinate_passes
        )
        centers = assign_primary(ordering, prim_size, self.rank_sep)

        orders: dict[str, int] = {}
        primary: dict[str, float] = {}
        for layer_idx, layer in enumerate(ordering):
            for order, node_id in enumerate(layer):
                if is_dummy(node_id):
                    continue
                orders[node_id] = order
                primary[node_id] = centers[layer_idx]

        return ComponentLayout(
            layers=real_layers,
            orders=orders,
            primary=primary,
            perpendicular={n: perpendicular[n] for n in graph.nodes},
            group_depths=depths,
            reversed_edges=la.reversed_edges,
        )
