import keyword
import re
from typing import List

from regparallel.internal.errors import ConfigurationError

DEFAULT_WILDCARD = "[*]"

# Loosely matches the names that may refer to columns of the data in a formula
NAME_REGEX = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


class FormulaTemplate:
    """
    A model formula containing a single wildcard that is replaced by each variable in turn.

    Parameters
    ----------
    template: str
        Formula with exactly one wildcard, for example "y ~ [*] + age + sex"
    wildcard: str, default "[*]"
        The token to be replaced
    quote: bool, default True
        If True, variable names that are not valid identifiers (or are Python keywords) are inserted as Q('name')
        so that the formula can still be parsed.  Other names are always inserted as-is.

    Examples
    --------
    >>> FormulaTemplate("y ~ [*] + age").render("gene1")
    'y ~ gene1 + age'
    """

    def __init__(self, template: str, wildcard: str = DEFAULT_WILDCARD, quote: bool = True):
        if not isinstance(template, str):
            raise ConfigurationError(f"The formula must be a string, not {type(template)}")
        if not isinstance(wildcard, str) or len(wildcard) == 0:
            raise ConfigurationError("The wildcard must be a non-empty string")
        count = template.count(wildcard)
        if count == 0:
            raise ConfigurationError(
                f"The formula '{template}' does not contain the wildcard '{wildcard}'"
            )
        elif count > 1:
            raise ConfigurationError(
                f"The formula '{template}' contains the wildcard '{wildcard}' {count} times (it must appear once)"
            )
        self.template = template
        self.wildcard = wildcard
        self.quote = quote
        self._prefix, self._suffix = template.split(wildcard)

    def __str__(self):
        return self.template

    def __repr__(self):
        return f"{self.__class__.__name__}({self.template!r})"

    def render(self, variable: str) -> str:
        name = str(variable)
        if self.quote and (not name.isidentifier() or keyword.iskeyword(name)):
            escaped = name.replace("\\", "\\\\").replace("'", "\\'")
            name = f"Q('{escaped}')"
        return self._prefix + name + self._suffix

    def referenced_names(self) -> List[str]:
        """Names used in the template outside of the wildcard"""
        return NAME_REGEX.findall(self._prefix + " " + self._suffix)


def render(template: str, variable: str, wildcard: str = DEFAULT_WILDCARD) -> str:
    """Validate the template and substitute the variable for the wildcard"""
    return FormulaTemplate(template, wildcard=wildcard).render(variable)
