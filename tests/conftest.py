import os
from pathlib import Path
from typing import Any

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"

# Subprocess runs of the CLI report coverage when a config is exported
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    import coverage.collector

    def _quiet_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = _quiet_stop


@pytest.fixture
def cli_env() -> dict[str, str]:
    """Environment for running ``python -m rstn.rstn_cli`` from a checkout."""
    env = dict(os.environ)
    paths = [str(SRC_DIR)]
    if env.get("PYTHONPATH"):
        paths.append(env["PYTHONPATH"])
    env["PYTHONPATH"] = os.pathsep.join(paths)
    return env
