import importlib.util
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def incrf(start: int = 1):
    """Endless counter: incrf() yields start, start + 1, ..."""
    value = start
    while True:
        yield value
        value += 1


def load_module(script_path, module_name=None):
    script_path = Path(script_path)
    if module_name is None:
        module_name = script_path.stem
    spec = importlib.util.spec_from_file_location(module_name, str(script_path))
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    logger.debug("Loaded module %s from %s", module_name, script_path)
    return module
