import math

import numpy as np
import pytest

from regparallel.modules.analyze import ConfigurationError, default_block_size, partition


@pytest.mark.parametrize("n_variables", [1, 2, 7, 10, 100, 1001])
@pytest.mark.parametrize("block_size", [1, 3, 10, 500, 2000])
def test_partition_covers_every_variable_once(n_variables, block_size):
    variables = [f"v{i}" for i in range(n_variables)]
    blocks = partition(variables, block_size)
    # Concatenating the blocks gives back the input, in order
    flattened = [v for b in blocks for v in b.variables]
    assert flattened == variables
    assert len(set(flattened)) == n_variables
    assert len(blocks) == math.ceil(n_variables / block_size)
    assert [b.index for b in blocks] == list(range(len(blocks)))
    # Only the last block may be short
    assert all([len(b) == block_size for b in blocks[:-1]])
    assert 1 <= len(blocks[-1]) <= block_size


def test_partition_is_deterministic():
    variables = [f"v{i}" for i in range(23)]
    assert partition(variables, 4) == partition(variables, 4)


def test_partition_empty():
    assert partition([], 5) == []


def test_partition_numpy_integer():
    assert len(partition(["a", "b", "c"], np.int64(2))) == 2


@pytest.mark.parametrize("block_size", [0, -1, 2.5, "10", True])
def test_partition_invalid_block_size(block_size):
    with pytest.raises(ConfigurationError):
        partition(["a", "b"], block_size)


@pytest.mark.parametrize("n_variables,cores", [(100, 4), (10, 3), (2, 8), (1, 1)])
def test_default_block_size(n_variables, cores):
    block_size = default_block_size(n_variables, cores)
    blocks = partition([f"v{i}" for i in range(n_variables)], block_size)
    assert len(blocks) == math.ceil(n_variables / cores)
