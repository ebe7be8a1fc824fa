import importlib.util
import sys
import uuid

import pytest


@pytest.fixture
def load_generated(tmp_path):
    """Write generated module text to tmp_path and import it."""
    loaded = []

    def load(text: str, module_name: str | None = None):
        module_name = module_name or f"generated_{uuid.uuid4().hex}"
        path = tmp_path / f"{module_name}.py"
        path.write_text(text, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(module_name, path)
        module = importlib.util.module_from_spec(spec)
        # dataclasses resolves string annotations through sys.modules
        sys.modules[module_name] = module
        loaded.append(module_name)
        spec.loader.exec_module(module)
        return module

    yield load

    for name in loaded:
        sys.modules.pop(name, None)
