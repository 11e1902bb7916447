# tests/conftest.py
import os
import tempfile
from decimal import getcontext, ROUND_HALF_UP

import pytest

from portfolio_ledger import config as app_config


@pytest.fixture(scope="session", autouse=True)
def set_decimal_precision_session_wide():
    """
    Set global decimal precision and rounding for all tests in the session.
    This mirrors setup_decimal_context in main.
    """
    getcontext().prec = app_config.INTERNAL_CALCULATION_PRECISION

    valid_rounding_modes = ["ROUND_CEILING", "ROUND_DOWN", "ROUND_FLOOR", "ROUND_HALF_DOWN",
                            "ROUND_HALF_EVEN", "ROUND_HALF_UP", "ROUND_UP", "ROUND_05UP"]
    if app_config.DECIMAL_ROUNDING_MODE in valid_rounding_modes:
        getcontext().rounding = app_config.DECIMAL_ROUNDING_MODE  # type: ignore
    else:
        getcontext().rounding = ROUND_HALF_UP  # type: ignore


@pytest.fixture
def temp_data_dir():
    """
    Creates a temporary directory for test input/output files.
    Yields the path to this directory and cleans it up afterwards.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def mock_config_paths(temp_data_dir, monkeypatch):
    """
    Points the default file locations in config at the temp directory.
    Returns the paths for explicit use in tests.
    """
    paths_dict = {
        "transactions": os.path.join(temp_data_dir, "transactions.csv"),
        "quotes": os.path.join(temp_data_dir, "quotes.json"),
        "realized_csv": os.path.join(temp_data_dir, "reports", "realized_gains.csv"),
        "temp_dir_root": temp_data_dir,
    }
    monkeypatch.setattr(app_config, "TRANSACTIONS_FILE_PATH", paths_dict["transactions"])
    monkeypatch.setattr(app_config, "QUOTES_FILE_PATH", paths_dict["quotes"])
    monkeypatch.setattr(app_config, "REALIZED_GAINS_CSV_PATH", paths_dict["realized_csv"])
    return paths_dict
