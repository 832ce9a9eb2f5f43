"""Test package structure and imports."""

import sys
from pathlib import Path


def test_package_import():
    """Test that the geotopo package can be imported."""
    import geotopo

    assert hasattr(geotopo, "__version__")
    assert geotopo.__version__ == "0.1.0"


def test_main_module_import():
    """Test that geotopo.__main__ can be imported."""
    import geotopo.__main__

    # Should not raise any errors
    assert geotopo.__main__


def test_cli_module_import():
    """Test that geotopo.cli can be imported."""
    import geotopo.cli

    assert hasattr(geotopo.cli, "main")
    assert callable(geotopo.cli.main)


def test_log_config_module_import():
    """Test that geotopo.log_config can be imported."""
    import geotopo.log_config

    assert callable(geotopo.log_config.get_logger)
    assert callable(geotopo.log_config.set_global_log_level)


def test_main_module_calls_cli():
    """Test that __main__ module calls cli.main()."""
    import geotopo.__main__

    main_file = Path(geotopo.__main__.__file__)
    content = main_file.read_text()

    assert "from geotopo.cli import main" in content
    assert "main()" in content


def test_public_api_exports():
    import geotopo

    for name in geotopo.__all__:
        assert hasattr(geotopo, name), name


def test_no_missing_dependencies():
    """Test that all imports work without missing dependencies."""
    try:
        import matplotlib  # noqa: F401
        import networkx  # noqa: F401
        import numpy  # noqa: F401
        import pandas  # noqa: F401
        import pyproj  # noqa: F401
        import shapely  # noqa: F401
        import yaml  # noqa: F401

        import geotopo.cli  # noqa: F401
        import geotopo.visualization  # noqa: F401

    except ImportError as e:
        import pytest

        pytest.fail(f"Missing required dependency: {e}")


def test_python_version_compatibility():
    """Test that package works with supported Python versions."""
    assert sys.version_info >= (3, 11), "Package requires Python 3.11+"
