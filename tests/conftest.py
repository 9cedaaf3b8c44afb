import logging
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture
def master_text() -> str:
    return (DATA_DIR / "master.m3u8").read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def _reset_cli_logger():
    yield
    logging.getLogger("m3u8_sort").handlers.clear()
