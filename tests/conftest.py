from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from reflectlinks.config.storage import DATA_DIR_ENV_VAR

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "reflectlinks-data"
    monkeypatch.setenv(DATA_DIR_ENV_VAR, str(data_dir))
    return data_dir


@pytest.fixture
def azure_devops_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for side, organization in (("SOURCE", "tfs-old"), ("TARGET", "tfs-new")):
        monkeypatch.setenv(f"{side}_ORGANIZATION", f"https://dev.azure.com/{organization}/")
        monkeypatch.setenv(f"{side}_PROJECT", f"{side.title()} Project")
        monkeypatch.setenv(f"{side}_PAT", f"{side.lower()}-token")
        monkeypatch.delenv(f"{side}_CHECKIN_NOTE_FIELDS", raising=False)
