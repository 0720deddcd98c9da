from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Block:
    """A contiguous run of variables dispatched as one outer unit of work"""

    index: int
    variables: Tuple[str, ...]

    def __len__(self):
        return len(self.variables)


@dataclass(frozen=True)
class ResultRow:
    """
    Normalized result for one term of one fitted model.
    Numeric fields are None when they could not be derived (as opposed to the whole fit failing).
    """

    variable: str
    term: str
    beta: Optional[float]
    standard_error: Optional[float]
    statistic: Optional[float]
    p: Optional[float]
    lower: Optional[float] = None
    upper: Optional[float] = None
    ratio: Optional[float] = None
    ratio_lower: Optional[float] = None
    ratio_upper: Optional[float] = None
    extras: Dict[str, Optional[float]] = field(default_factory=dict, hash=False)

    def missing_fields(self, with_ratio: bool = True) -> List[str]:
        """Names of the statistics that are missing for this row"""
        skip = {"variable", "term", "extras"}
        if not with_ratio:
            skip |= {"ratio", "ratio_lower", "ratio_upper"}
        missing = [f.name for f in fields(self) if f.name not in skip and getattr(self, f.name) is None]
        missing += [name for name, value in self.extras.items() if value is None]
        return missing


@dataclass(frozen=True)
class FitOutcome:
    variable: str
    formula: Optional[str]
    warnings: Tuple[str, ...]


@dataclass(frozen=True)
class Success(FitOutcome):
    rows: Tuple[ResultRow, ...]
    output: str = ""


@dataclass(frozen=True)
class Failure(FitOutcome):
    reason: str
    output: str = ""
