import sys

from point_mapper.utils.misc import incrf, load_module


def test_incrf():
    counter = incrf()
    assert next(counter) == 1
    assert next(counter) == 2
    assert next(counter) == 3


def test_incrf_start():
    counter = incrf(10)
    assert next(counter) == 10
    assert next(counter) == 11


def test_load_module(tmp_path):
    script = tmp_path / "plugin.py"
    script.write_text("VALUE = 42\n")
    module = load_module(script, module_name="point_mapper_test_plugin")
    assert module.VALUE == 42
    assert sys.modules["point_mapper_test_plugin"] is module
    del sys.modules["point_mapper_test_plugin"]
