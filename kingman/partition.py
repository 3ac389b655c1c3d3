import numpy as np


class Partition:
    """
    A partition of the set {0, ..., n - 1} stored as a union-find forest.
    Blocks are enumerated in order of their smallest element, and the
    elements of each block in ascending order, so that the enumeration
    is deterministic for a given set of blocks.
    """

    def __init__(self, n):
        if int(n) != n:
            raise TypeError("Number of elements must be an integer")
        n = int(n)
        if n < 1:
            raise ValueError("A partition needs at least one element")
        self.parent = np.arange(n, dtype=np.int64)
        self.rank = np.zeros(n, dtype=np.int64)
        self._num_blocks = n

    def __len__(self):
        return self._num_blocks

    def __eq__(self, other):
        if not isinstance(other, Partition):
            return NotImplemented
        return self.blocks() == other.blocks()

    def __hash__(self):
        return hash(tuple(self.blocks()))

    def __repr__(self):
        s = ", ".join("{" + ", ".join(str(u) for u in b) + "}" for b in self.blocks())
        return "{" + s + "}"

    @property
    def num_elements(self):
        return self.parent.shape[0]

    @property
    def num_blocks(self):
        return self._num_blocks

    def find(self, x):
        """
        Returns the root of the tree containing x, compressing the path
        on the way up.
        """
        if not 0 <= x < self.num_elements:
            raise ValueError(f"Element {x} outside [0, {self.num_elements})")
        parent = self.parent
        root = x
        while parent[root] != root:
            root = parent[root]
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return int(root)

    def union(self, a, b):
        """
        Merges the blocks containing a and b. Returns False if they were
        already in the same block.
        """
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return False
        if self.rank[ra] < self.rank[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        if self.rank[ra] == self.rank[rb]:
            self.rank[ra] += 1
        self._num_blocks -= 1
        return True

    def blocks(self):
        groups = dict()
        for u in range(self.num_elements):
            groups.setdefault(self.find(u), []).append(u)
        # dicts keep insertion order: first insertion is the smallest element
        blocks = [tuple(b) for b in groups.values()]
        assert len(blocks) == self._num_blocks
        return blocks

    def block(self, index):
        return self.blocks()[index]

    def copy(self):
        other = Partition.__new__(Partition)
        other.parent = self.parent.copy()
        other.rank = self.rank.copy()
        other._num_blocks = self._num_blocks
        return other

    def as_sets(self):
        return {frozenset(b) for b in self.blocks()}
