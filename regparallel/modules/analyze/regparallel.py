from collections import defaultdict
from typing import Callable, List, Optional, Type, Union

import click
import pandas as pd

from regparallel.internal.calculations import critical_value
from regparallel.internal.errors import ConfigurationError
from regparallel.internal.utilities import _validate_variables, print_wrap

from .blocks import default_block_size, partition
from .formula import DEFAULT_WILDCARD, FormulaTemplate
from .regression import ModelFamily, get_model_family
from .scheduler import NestedScheduler
from .types import Block, Failure, FitOutcome, Success
from .utils import add_corrected_pvalues, filter_terms, validate_correction_method


class RegParallel:
    """
    Fit one model per variable by substituting each variable into a formula template, and collect the results
    into a single table.

    Parameters
    ----------
    data: pd.DataFrame
        Data used in the analysis.  It is shared (read-only) by all workers.
    formula: str
        Formula template containing the wildcard exactly once, for example "y ~ [*] + age"
    variables: str, List[str], or None
        Variables to be substituted into the formula.
        If None, use all columns in `data` that aren't referenced in the formula
    fit_function: callable or None
        Called as `fit_function(formula, data, **fit_kwargs)` and must return a fitted model with the statsmodels
        results interface.  If None, the default fit function of the family is used.
    family: str, ModelFamily subclass, or ModelFamily instance
        'logistic' by default.  One of 'linear', 'logistic', 'cox', 'conditional_logistic', 'negative_binomial',
        'bayesian_logistic', 'survey_glm'
    block_size: int or None
        Number of variables in each block.  If None, the number of cores is used so that there are
        ceil(variables / cores) blocks.
    cores: int or None
        Number of threads used at each level.  Defaults to the number of cores minus two (at least 1).
    nested_parallel: bool
        False by default.
          If True, variables within each block are also fit in parallel.  This is faster for large numbers of
          variables, but the overhead of starting a pool for every block can make it slower for small ones.
    conf_level: float
        Confidence level (in percent) of the reported intervals.  95 by default.
    exclude_terms: str, List[str], or None
        Terms (for example covariates present in every model) that are removed from the results.
    exclude_intercept: bool
        True by default.  If True, the intercept term is removed from the results.
    p_adjust: str
        Multiple testing correction applied across all reported terms: 'none' (default), 'bonferroni', 'holm',
        'hochberg', 'hommel', 'BH' (or 'fdr'), 'BY'
    report_failures: bool
        True by default.
          If True, each variable that could not be fit is reported as a single row with missing values.
          If False, those variables are left out of the results.
          Either way they are listed in the `failures` attribute of the result (`result.attrs["failures"]`).
    wildcard: str
        The token in `formula` that is replaced by each variable, "[*]" by default
    fit_kwargs:
        Passed to `fit_function` (for example `status` for Cox models or `groups` for conditional logistic models)
    """

    def __init__(
        self,
        data: pd.DataFrame,
        formula: str,
        variables: Optional[Union[str, List[str]]] = None,
        fit_function: Optional[Callable] = None,
        family: Union[str, ModelFamily, Type[ModelFamily]] = "logistic",
        block_size: Optional[int] = None,
        cores: Optional[int] = None,
        nested_parallel: bool = False,
        conf_level: float = 95,
        exclude_terms: Optional[Union[str, List[str]]] = None,
        exclude_intercept: bool = True,
        p_adjust: str = "none",
        report_failures: bool = True,
        wildcard: str = DEFAULT_WILDCARD,
        **fit_kwargs,
    ):
        self.data = data
        self.template = FormulaTemplate(formula, wildcard=wildcard)
        self.family = get_model_family(family)
        self.fit_kwargs = fit_kwargs
        if fit_function is None:
            fit_function = self.family.default_fit_function()
        elif not callable(fit_function):
            raise ConfigurationError("'fit_function' must be callable")
        self.fit_function = fit_function

        if variables is None:
            variables = self._default_variables()
        self.variables = _validate_variables(data, variables)

        self.scheduler = NestedScheduler(cores=cores, nested_parallel=nested_parallel)
        if block_size is None:
            block_size = default_block_size(len(self.variables), self.scheduler.cores)
        self.blocks = partition(self.variables, block_size)
        self.block_size = block_size

        try:
            conf_level = float(conf_level)
        except (TypeError, ValueError):
            raise ConfigurationError(f"'conf_level' must be a number (was {conf_level!r})")
        if not 0 < conf_level < 100:
            raise ConfigurationError(f"'conf_level' must be between 0 and 100 (was {conf_level})")
        self.conf_level = conf_level
        self.z = critical_value(conf_level)

        if isinstance(exclude_terms, str):
            exclude_terms = [exclude_terms]
        self.exclude_terms = list(exclude_terms) if exclude_terms is not None else []
        self.exclude_intercept = exclude_intercept
        validate_correction_method(p_adjust)
        self.p_adjust = p_adjust
        self.report_failures = report_failures

        # Filled in by run()
        self.outcomes: List[FitOutcome] = []
        self.errors = dict()
        self.warnings = defaultdict(list)
        self.output = dict()
        self.run_complete = False

        self.description = (
            f"Formula: '{self.template}'\n"
            f"Model family: {self.family.name or self.family}\n"
            f"Regressing {len(self.variables):,} variables in {len(self.blocks):,} blocks of up to"
            f" {self.block_size:,} using {self.scheduler}\n"
            f"{self.conf_level:g}% confidence intervals, '{self.p_adjust}' pvalue correction"
        )
        if len(self.exclude_terms) > 0:
            self.description += f"\nExcluding terms: {', '.join(self.exclude_terms)}"

    def __str__(self):
        return (
            f"{self.__class__.__name__}\n"
            + ("-" * 25)
            + f"\n{self.description}\n"
            + ("-" * 25)
        )

    def _default_variables(self) -> List[str]:
        """Every column that isn't used in the formula or named in the fit kwargs"""
        if not isinstance(self.data, pd.DataFrame):
            raise ConfigurationError("'variables' must be specified when 'data' is not a DataFrame")
        used = set(self.template.referenced_names())
        used |= {v for v in self.fit_kwargs.values() if isinstance(v, str)}
        return [c for c in self.data.columns if c not in used]

    def _run_variable(self, variable: str) -> FitOutcome:
        formula = self.template.render(variable)
        return self.family.fit(
            variable, formula, self.data, self.fit_function, self.z, **self.fit_kwargs
        )

    def _log_block(self, block: Block, outcomes: List[FitOutcome]):
        failed = sum([isinstance(o, Failure) for o in outcomes])
        message = f"\tFinished block {block.index + 1:,} of {len(self.blocks):,} ({len(block):,} variables"
        if failed > 0:
            message += f", {failed:,} failed"
        click.echo(message + ")")

    def _log_errors_and_warnings(self):
        """Print any errors and warnings present in the regression (if any)"""
        if len(self.errors) == 0:
            click.echo(click.style("0 variables had an error", fg="green"))
        else:
            click.echo(click.style(f"{len(self.errors):,} variables had an error", fg="red"))
            for variable, error in self.errors.items():
                click.echo(click.style(f"\t{variable} = NULL due to: {error}", fg="red"))
        for variable, warning_list in self.warnings.items():
            if len(warning_list) > 0:
                click.echo(click.style(f"{variable} had warnings:", fg="yellow"))
                for warning in warning_list:
                    click.echo(click.style(f"\t{warning}", fg="yellow"))

    def run(self):
        """Fit the model for every variable, collecting the outcomes in order"""
        click.echo(
            click.style(
                f"Running {len(self.variables):,} variables in {len(self.blocks):,} blocks using {self.scheduler}...",
                fg="green",
            )
        )
        self.outcomes = self.scheduler.run(self.blocks, self._run_variable, on_block_complete=self._log_block)
        self.errors = dict()
        self.warnings = defaultdict(list)
        self.output = dict()
        for outcome in self.outcomes:
            if isinstance(outcome, Failure):
                self.errors[outcome.variable] = outcome.reason
            if len(outcome.warnings) > 0:
                self.warnings[outcome.variable] = list(outcome.warnings)
            if len(getattr(outcome, "output", "")) > 0:
                self.output[outcome.variable] = outcome.output
        click.echo(click.style(f"\tFinished Running {len(self.variables):,} variables", fg="green"))
        self.run_complete = True

    def get_results(self) -> pd.DataFrame:
        """
        Get regression results if `run` has already been called

        Returns
        -------
        result: pd.DataFrame
            One row per reported term per variable, in the order the variables were given
        """
        if not self.run_complete:
            raise ValueError(
                "No results: either the 'run' method was not called, or there was a problem running"
            )
        self._log_errors_and_warnings()

        rows = []
        for outcome in self.outcomes:
            if isinstance(outcome, Success):
                rows.extend([self.family.row_to_dict(r) for r in outcome.rows])
            elif self.report_failures:
                rows.append(self.family.get_default_result_dict(outcome.variable))
        columns = self.family.columns()
        result = pd.DataFrame(rows, columns=columns)

        # Missing statistics are None until here
        numeric = [c for c in columns if c not in ("Variable", "Term")]
        result[numeric] = result[numeric].astype(float)

        result = filter_terms(result, self.exclude_terms, self.exclude_intercept)
        result = result.reset_index(drop=True)
        # Correction must cover exactly the rows that are reported
        add_corrected_pvalues(result, method=self.p_adjust)

        result.attrs["failures"] = dict(self.errors)
        result.attrs["warnings"] = {v: list(w) for v, w in self.warnings.items()}
        result.attrs["output"] = dict(self.output)
        return result


@print_wrap
def regparallel(
    data: pd.DataFrame,
    formula: str,
    variables: Optional[Union[str, List[str]]] = None,
    fit_function: Optional[Callable] = None,
    family: Union[str, ModelFamily, Type[ModelFamily]] = "logistic",
    block_size: Optional[int] = None,
    cores: Optional[int] = None,
    nested_parallel: bool = False,
    conf_level: float = 95,
    exclude_terms: Optional[Union[str, List[str]]] = None,
    exclude_intercept: bool = True,
    p_adjust: str = "none",
    report_failures: bool = True,
    wildcard: str = DEFAULT_WILDCARD,
    **fit_kwargs,
) -> pd.DataFrame:
    """
    Run one regression per variable, substituting each variable into the wildcard of `formula`

    Variables are split into blocks which are run in parallel (and optionally, the variables within each block).
    A variable whose model fails is recorded and does not affect any other variable.
    Results are in the same order as `variables`, with multiple testing correction applied across all reported
    terms in the 'P.adjust' column.

    Parameters
    ----------
    See `RegParallel`

    Returns
    -------
    df: pd.DataFrame
        Results with these columns: ['Variable', 'Term', 'Beta', 'StandardError', <'t' or 'Z'>, 'P',
        <family-specific statistics>, <'OR', 'HR', or 'BetaLower'>, ..., 'P.adjust'].
        `df.attrs["failures"]` maps each variable that failed to the reason,
        `df.attrs["warnings"]` maps variables to the warnings raised while fitting them,
        `df.attrs["output"]` maps variables to anything their fit function printed.

    Examples
    --------
    >>> results = regparallel.analyze.regparallel(
    ...     data, formula="case ~ [*] + age", variables=genes, family="logistic",
    ...     block_size=100, cores=4, exclude_terms="age", p_adjust="BH"
    ... )
    """
    regression = RegParallel(
        data=data,
        formula=formula,
        variables=variables,
        fit_function=fit_function,
        family=family,
        block_size=block_size,
        cores=cores,
        nested_parallel=nested_parallel,
        conf_level=conf_level,
        exclude_terms=exclude_terms,
        exclude_intercept=exclude_intercept,
        p_adjust=p_adjust,
        report_failures=report_failures,
        wildcard=wildcard,
        **fit_kwargs,
    )
    print(regression)

    regression.run()
    result = regression.get_results()

    click.echo(click.style("Completed RegParallel", fg="green"))
    return result
