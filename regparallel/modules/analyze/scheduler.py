import multiprocessing
from functools import partial
from multiprocessing.pool import ThreadPool
from numbers import Integral
from typing import Callable, List, Optional, Sequence

from regparallel.internal.errors import ConfigurationError
from regparallel.internal.utilities import route_output, route_warnings

from .types import Block, Failure, FitOutcome

# A unit of work takes one variable and returns its outcome
UnitOfWork = Callable[[str], FitOutcome]
BlockCallback = Callable[[Block, List[FitOutcome]], None]


def default_cores() -> int:
    """Leave two cores free for the rest of the system"""
    return max(1, multiprocessing.cpu_count() - 2)


class NestedScheduler:
    """
    Run a unit of work for every variable in a list of blocks using two levels of thread pools.

    Blocks are dispatched to an outer pool of `cores` threads.  When `nested_parallel` is True each block
    dispatches its own variables to an inner pool of `cores` threads, otherwise they are run one after another
    by the thread handling the block.  Nested mode only pays off when there are many variables, since every
    block then pays for starting its own pool.

    Outcomes are returned in block order and then variable order, no matter which order they finish in.
    There is no cancellation or timeout: a unit of work that never returns blocks its thread.

    While `run` is active, warnings and stdout of every thread are routed to per-thread capture lists (see
    `collect_warnings` and `collect_output`).  This replaces the process-wide `warnings.showwarning`, warning
    filters, and `sys.stdout`, so only one scheduler should run at a time: concurrent runs started from
    different threads would restore each other's state out of order.

    Parameters
    ----------
    cores: Optional[int]
        Width of the thread pool at each level.  Defaults to the number of cores minus two (at least 1).
    nested_parallel: bool
        False by default.  If True, variables within a block are run in parallel as well.
    """

    def __init__(self, cores: Optional[int] = None, nested_parallel: bool = False):
        if cores is None:
            cores = default_cores()
        if isinstance(cores, bool) or not isinstance(cores, Integral) or cores < 1:
            raise ConfigurationError(f"'cores' must be a positive integer (was {cores!r})")
        self.cores = int(cores)
        self.nested_parallel = bool(nested_parallel)

    def __str__(self):
        mode = "nested" if self.nested_parallel else "flat"
        return f"{self.cores} cores ({mode})"

    def run(
        self,
        blocks: Sequence[Block],
        unit_of_work: UnitOfWork,
        on_block_complete: Optional[BlockCallback] = None,
    ) -> List[FitOutcome]:
        """
        Run all blocks and return the outcomes.  Blocks until every block is complete.
        `on_block_complete` is called on the calling thread, in block order.
        """
        outcomes = []
        if len(blocks) == 0:
            return outcomes

        run_block = partial(self._run_block, unit_of_work=unit_of_work)
        with route_warnings(), route_output():
            with ThreadPool(processes=min(self.cores, len(blocks))) as pool:
                for block, block_outcomes in zip(blocks, pool.imap(run_block, blocks)):
                    outcomes.extend(block_outcomes)
                    if on_block_complete is not None:
                        on_block_complete(block, block_outcomes)
        return outcomes

    def _run_block(self, block: Block, unit_of_work: UnitOfWork) -> List[FitOutcome]:
        run_variable = partial(self._run_variable, unit_of_work)
        if self.nested_parallel and len(block) > 1:
            with ThreadPool(processes=min(self.cores, len(block))) as pool:
                return pool.map(run_variable, block.variables)
        else:
            return [run_variable(v) for v in block.variables]

    @staticmethod
    def _run_variable(unit_of_work: UnitOfWork, variable: str) -> FitOutcome:
        # Errors escaping the unit of work are recorded against the variable
        try:
            return unit_of_work(variable)
        except Exception as e:
            return Failure(variable=variable, formula=None, warnings=(), reason=str(e))
