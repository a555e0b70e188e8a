"""train-tracker package for release-train status and milestone correlation."""


def _get_version() -> str:
    """Get package version with fallback mechanisms."""
    from importlib.metadata import PackageNotFoundError, version

    # Method 1: importlib.metadata (installed packages)
    try:
        return version("train-tracker")
    except PackageNotFoundError:
        pass

    # Method 2: pyproject.toml next to the source tree
    from pathlib import Path

    import tomllib

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            pyproject_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"
    return pyproject_data.get("project", {}).get("version", "unknown")


__version__ = _get_version()
