import sys
import threading
import warnings

import pandas as pd
import pytest

import regparallel.internal.utilities as util
from regparallel.internal.errors import ConfigurationError


def test_collect_warnings():
    with util.route_warnings():
        with util.collect_warnings() as captured:
            warnings.warn("first")
            warnings.warn("first")
            warnings.warn("second", RuntimeWarning)
        with util.collect_warnings() as other:
            pass
    # Every occurrence is kept, even repeats from the same line
    assert captured == ["UserWarning: first", "UserWarning: first", "RuntimeWarning: second"]
    assert other == []


def test_uncollected_warnings_are_shown():
    with pytest.warns(UserWarning, match="shown"):
        with util.route_warnings():
            warnings.warn("shown")


def test_validate_variables():
    data = pd.DataFrame({"a": [1], "b": [2], "c": [3]})
    assert util._validate_variables(data, "a") == ["a"]
    assert util._validate_variables(data, ("c", "a")) == ["c", "a"]
    with pytest.raises(ConfigurationError, match="duplicates: a"):
        util._validate_variables(data, ["a", "b", "a"])
    with pytest.raises(ConfigurationError, match="not found in the data: d"):
        util._validate_variables(data, ["a", "d"])
    with pytest.raises(ConfigurationError):
        util._validate_variables(data, [])


def test_collect_output_per_thread(capsys):
    results = dict()

    def work(name):
        with util.collect_output() as output:
            for i in range(3):
                print(f"{name} {i}")
        results[name] = output.getvalue()

    with util.route_output():
        threads = [threading.Thread(target=work, args=(f"t{i}",)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        print("coordinator")
    assert results == {f"t{i}": "".join([f"t{i} {j}\n" for j in range(3)]) for i in range(4)}
    assert capsys.readouterr().out == "coordinator\n"
    # The original stream is restored
    assert not isinstance(sys.stdout, util._ThreadRoutedStream)
