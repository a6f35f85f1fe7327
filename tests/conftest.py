from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

import pytest

import logfmtkit.api as logfmt_api
from logfmtkit.config import loader


@pytest.fixture(autouse=True)
def reset_logfmtkit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    user_dir = tmp_path / "user-config"
    monkeypatch.setattr(loader, "user_config_dir", lambda _: str(user_dir))
    for key in list(os.environ):
        if key.startswith("LOGFMTKIT__"):
            monkeypatch.delenv(key)
    yield
    logfmt_api._CONFIG = None
    logging.getLogger("logfmtkit").setLevel(logging.NOTSET)
