from numbers import Integral
from typing import List, Sequence

from regparallel.internal.errors import ConfigurationError

from .types import Block


def default_block_size(n_variables: int, cores: int) -> int:
    """
    Block size used when none is given: the number of cores, giving ceil(n_variables / cores) blocks
    """
    return max(1, min(cores, n_variables))


def partition(variables: Sequence[str], block_size: int) -> List[Block]:
    """
    Split variables into contiguous blocks of `block_size`, preserving order.  The last block may be shorter.

    Examples
    --------
    >>> [b.variables for b in partition(["a", "b", "c"], 2)]
    [('a', 'b'), ('c',)]
    """
    if isinstance(block_size, bool) or not isinstance(block_size, Integral):
        raise ConfigurationError(f"'block_size' must be an integer, not {type(block_size)}")
    if block_size < 1:
        raise ConfigurationError(f"'block_size' must be at least 1 (was {block_size})")
    block_size = int(block_size)
    variables = list(variables)
    return [
        Block(index=idx, variables=tuple(variables[start : start + block_size]))
        for idx, start in enumerate(range(0, len(variables), block_size))
    ]
