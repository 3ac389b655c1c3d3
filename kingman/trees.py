"""
Conversion of coalescent realizations into tskit tree sequences.
"""

import tskit


def merged_blocks(before, after):
    """
    Returns the two blocks of ``before`` that were joined to give ``after``,
    ordered by smallest element.
    """
    old = set(before.blocks())
    new = set(after.blocks())
    removed = sorted(old - new)
    added = new - old
    if (
        len(after) != len(before) - 1
        or len(removed) != 2
        or len(added) != 1
        or set(removed[0] + removed[1]) != set(next(iter(added)))
    ):
        raise ValueError(f"{after} is not a single merge of {before}")
    return removed[0], removed[1]


def to_tree_sequence(realization):
    """
    Builds the genealogy described by a realization. Each element is a
    sample node at time 0 and each merge adds a parent node at the sum of
    the waiting times so far.
    """
    if len(realization) == 0:
        raise ValueError("Empty realization")
    _, initial = realization[0]
    n = initial.num_elements
    if initial.num_blocks != n:
        raise ValueError("Realization must start from all singletons")

    tables = tskit.TableCollection(sequence_length=1)
    block_node = dict()
    for u in range(n):
        block_node[(u,)] = tables.nodes.add_row(flags=tskit.NODE_IS_SAMPLE, time=0)

    t = 0
    for (_, before), (time, after) in zip(realization, realization[1:]):
        t += time
        a, b = merged_blocks(before, after)
        parent = tables.nodes.add_row(time=t)
        for block in a, b:
            tables.edges.add_row(0, 1, parent, block_node.pop(block))
        block_node[tuple(sorted(a + b))] = parent

    tables.sort()
    return tables.tree_sequence()
