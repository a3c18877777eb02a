import importlib

import pytest


@pytest.mark.parametrize("module_name", [
    "core",
    "core.theme",
    "inference",
    "loaders",
    "loaders.zones",
])
def test_package_imports(module_name):
    """Packages import cleanly without network access or API keys."""
    assert importlib.import_module(module_name) is not None
