import pytest

from gitflow_version.cli import BUILD_AGENT_VARIABLES


@pytest.fixture(autouse=True)
def isolate_build_agent_environment(monkeypatch):
    """Remove build server variables so tests behave the same on CI.

    Build agent detection changes how a missing repository is reported;
    tests that need it pass ``--build-agent`` or ``build_agent=True``.
    """
    for name in BUILD_AGENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    yield
