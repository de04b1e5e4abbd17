import os

from loanrules import __version__


def test_changelog_lists_current_version():
    root = os.path.dirname(os.path.dirname(__file__))
    changelog = os.path.join(root, "CHANGELOG.md")
    assert os.path.exists(changelog), "CHANGELOG.md should exist"
    with open(changelog) as f:
        lines = f.readlines()
    assert f"## {__version__}\n" in lines
    entries = [line for line in lines if line.strip().startswith("- ")]
    assert entries, "CHANGELOG.md should contain at least one bullet entry"


def test_package_versions_agree():
    import core

    assert core.__version__ == __version__


def test_version_matches_pyproject():
    root = os.path.dirname(os.path.dirname(__file__))
    with open(os.path.join(root, "pyproject.toml")) as f:
        declared = [line for line in f if line.startswith("version = ")]
    assert declared == [f'version = "{__version__}"\n']
