"""Layout entry points: visible subgraph in, positioned flow out."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

import networkx as nx

from flow_groups.config import DimensionsFn, LayoutConfig
from flow_groups.layout.sugiyama import ComponentLayout, SugiyamaLayout
from flow_groups.layout.types import LayoutNode, LayoutResult
from flow_groups.model.flow import Edge, Flow, Node, Point, Size
from flow_groups.types import Direction

logger = logging.getLogger(__name__)


def _visible_graph(nodes: Sequence[Node], edges: Sequence[Edge]) -> nx.DiGraph:
    graph: nx.DiGraph = nx.DiGraph()
    for node in nodes:
        if node.is_visible:
            graph.add_node(node.id)

    skipped = 0
    for edge in edges:
        if edge.hidden or edge.source not in graph or edge.target not in graph or edge.source == edge.target:
            skipped += 1
            continue
        graph.add_edge(edge.source, edge.target)
    if skipped:
        logger.debug("layout skipped %d hidden, dangling or self-loop edges", skipped)
    return graph


def _components(graph: nx.DiGraph, index: dict[str, int]) -> list[nx.DiGraph]:
    """Weakly connected components, ordered by their earliest node in the input."""
    parts = sorted(nx.weakly_connected_components(graph), key=lambda comp: min(index[n] for n in comp))
    result: list[nx.DiGraph] = []
    for comp in parts:
        sub: nx.DiGraph = nx.DiGraph()
        sub.add_nodes_from(n for n in graph.nodes if n in comp)
        sub.add_edges_from((s, t) for s, t in graph.edges if s in comp)
        result.append(sub)
    return result


def run_layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    direction: Direction | str = Direction.LR,
    dimensions_fn: DimensionsFn | None = None,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Lay out every visible node and report what was computed.

    Hidden nodes keep their stored position. Edges are returned unchanged.
    Positions are top-left corners; each component starts at the origin of
    the rank axis and components are stacked across it.
    """
    direction = Direction.parse(direction)
    config = config or LayoutConfig()
    dims = dimensions_fn or config.dimensions

    if not nodes:
        return LayoutResult(flow=Flow(nodes=[], edges=list(edges)), nodes=[], direction=direction)

    index = {n.id: i for i, n in enumerate(nodes)}
    by_id = {n.id: n for n in nodes}
    graph = _visible_graph(nodes, edges)

    sizes: dict[str, Size] = {nid: dims(by_id[nid]) for nid in graph.nodes}
    if direction.is_horizontal:
        prim_size = {nid: s.width for nid, s in sizes.items()}
        perp_size = {nid: s.height for nid, s in sizes.items()}
    else:
        prim_size = {nid: s.height for nid, s in sizes.items()}
        perp_size = {nid: s.width for nid, s in sizes.items()}
    parent_of = {nid: by_id[nid].parent_group_id for nid in graph.nodes}
    order_key = {nid: (by_id[nid].parent_group_id or "", index[nid]) for nid in graph.nodes}

    engine = SugiyamaLayout(
        rank_sep=config.rank_sep,
        node_sep=config.node_sep,
        member_gap=config.member_gap,
        crossing_passes=config.crossing_passes,
        coordinate_passes=config.coordinate_passes,
    )

    placed: dict[str, LayoutNode] = {}
    result = LayoutResult(flow=Flow(), nodes=[], direction=direction)
    cursor = 0.0
    for comp_idx, comp in enumerate(_components(graph, index)):
        cl = engine.layout(comp, prim_size, perp_size, parent_of, order_key)
        extent = _place_component(cl, comp_idx, cursor, prim_size, perp_size, sizes, direction, placed)
        cursor += extent + config.component_gap
        result.ranks.update(cl.layers)
        result.group_depths.update(cl.group_depths)
        result.reversed_edges |= cl.reversed_edges
    logger.debug("laid out %d visible nodes (%s)", len(placed), direction.value)

    next_nodes = [
        replace(n, position=Point(placed[n.id].x, placed[n.id].y)) if n.id in placed else n for n in nodes
    ]
    result.flow = Flow(nodes=next_nodes, edges=list(edges))
    result.nodes = [placed[n.id] for n in nodes if n.id in placed]
    result.did_change = positions_changed(nodes, next_nodes)
    return result


def _place_component(
    cl: ComponentLayout,
    comp_idx: int,
    cursor: float,
    prim_size: dict[str, float],
    perp_size: dict[str, float],
    sizes: dict[str, Size],
    direction: Direction,
    placed: dict[str, LayoutNode],
) -> float:
    """Map one component onto x/y at ``cursor`` across the rank axis; return its perpendicular extent."""
    perp_lo = min(cl.perpendicular[n] - perp_size[n] / 2 for n in cl.perpendicular)
    perp_hi = max(cl.perpendicular[n] + perp_size[n] / 2 for n in cl.perpendicular)
    prim_hi = max(cl.primary[n] + prim_size[n] / 2 for n in cl.primary)

    for node_id, center in cl.primary.items():
        if direction.is_reversed:
            prim = prim_hi - (center + prim_size[node_id] / 2)
        else:
            prim = center - prim_size[node_id] / 2
        perp = cl.perpendicular[node_id] - perp_size[node_id] / 2 - perp_lo + cursor
        x, y = (prim, perp) if direction.is_horizontal else (perp, prim)
        placed[node_id] = LayoutNode(
            id=node_id,
            layer=cl.layers[node_id],
            order=cl.orders[node_id],
            x=x,
            y=y,
            width=sizes[node_id].width,
            height=sizes[node_id].height,
            component=comp_idx,
        )
    return perp_hi - perp_lo


def layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    direction: Direction | str = Direction.LR,
    dimensions_fn: DimensionsFn | None = None,
    config: LayoutConfig | None = None,
) -> Flow:
    """Run the layered layout and return only the positioned flow."""
    return run_layout(nodes, edges, direction, dimensions_fn, config).flow


def positions_changed(before: Sequence[Node], after: Sequence[Node]) -> bool:
    """True when a node was added, removed or moved."""
    old = {n.id: n.position for n in before}
    new = {n.id: n.position for n in after}
    if old.keys() != new.keys():
        return True
    return any(old[nid] != new[nid] for nid in old)
