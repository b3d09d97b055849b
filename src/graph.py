"""NetworkX graph building and operations over indexed pedigree input."""

import logging

import networkx as nx

from models import PedigreeInput, RelationCode

logger = logging.getLogger(__name__)


def build_graph(ped: PedigreeInput) -> nx.DiGraph:
    """
    Build a NetworkX directed graph from indexed pedigree input.

    Nodes are person indices. PARENT_OF edges run parent -> child; SPOUSE_OF
    edges run from the first to the second member of each spouse relation.
    Indices are assumed to be in range (see validation.validate_pedigree).
    """
    G = nx.DiGraph()

    # Add nodes (persons)
    for i, person_id in enumerate(ped.id):
        G.add_node(i, person_name=person_id, sex=ped.sex[i])

    # Add edges (relationships)
    for child in range(len(ped)):
        for parent in (ped.father_index[child], ped.mother_index[child]):
            if parent >= 0:
                G.add_edge(parent, child, relationship_type="PARENT_OF")

    for rel in ped.relation:
        if rel.code != RelationCode.SPOUSE:
            continue
        # Parentage wins over a spouse edge between the same two people
        if not G.has_edge(rel.id1, rel.id2) and not G.has_edge(rel.id2, rel.id1):
            G.add_edge(rel.id1, rel.id2, relationship_type="SPOUSE_OF")

    return G


def get_parent_graph(G: nx.DiGraph) -> nx.DiGraph:
    """Return the PARENT_OF-only view of G, keeping every person node."""
    parent_graph = nx.DiGraph()
    parent_graph.add_nodes_from(G.nodes(data=True))
    parent_graph.add_edges_from(
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    )
    return parent_graph


def find_parent_cycle(G: nx.DiGraph) -> list[int] | None:
    """Return the people on a parent-child cycle, or None when there is none."""
    try:
        cycle = nx.find_cycle(get_parent_graph(G), orientation="original")
    except nx.NetworkXNoCycle:
        return None
    return [edge[0] for edge in cycle]


def spouses_of(G: nx.DiGraph, person: int) -> set[int]:
    """Return everyone joined to `person` by a SPOUSE_OF edge, in either direction."""
    spouses: set[int] = set()
    for neighbor in G.predecessors(person):
        if G.edges[neighbor, person].get("relationship_type") == "SPOUSE_OF":
            spouses.add(neighbor)
    for neighbor in G.successors(person):
        if G.edges[person, neighbor].get("relationship_type") == "SPOUSE_OF":
            spouses.add(neighbor)
    return spouses


def share_ancestor(parent_graph: nx.DiGraph, a: int, b: int) -> bool:
    """True when `a` and `b` have at least one common ancestor."""
    return not nx.ancestors(parent_graph, a).isdisjoint(nx.ancestors(parent_graph, b))


def generation_levels(ped: PedigreeInput) -> list[int]:
    """
    Derive a generation row for every person.

    Children sit one row below the deeper of their parents. People without
    parents sit on the row of their deepest partner or co-parent (row 0
    when they have none), so a married-in spouse lines up with the blood relative they are
    attached to. The input must be acyclic.

    Args:
        ped: Indexed pedigree input

    Returns:
        A list of 0-based rows, one per person index
    """
    G = build_graph(ped)
    parent_graph = get_parent_graph(G)
    order = list(nx.topological_sort(parent_graph))
    partners = {i: spouses_of(G, i) for i in G.nodes}
    # Co-parents count as partners even without a spouse relation
    for dad, mom in zip(ped.father_index, ped.mother_index):
        if dad >= 0 and mom >= 0:
            partners[dad].add(mom)
            partners[mom].add(dad)

    level = [0] * len(ped)
    # Levels only ever grow, so this settles unless a founder is partnered
    # with one of their own descendants.
    for _ in range(len(ped) + 1):
        changed = False
        for node in order:
            parents = list(parent_graph.predecessors(node))
            if parents:
                new_level = max(level[p] for p in parents) + 1
            else:
                new_level = max((level[s] for s in partners[node]), default=0)
            if new_level != level[node]:
                level[node] = new_level
                changed = True
        if not changed:
            break
    else:
        logger.warning("Generation levels did not settle; a founder partners their own descendant")

    return level
