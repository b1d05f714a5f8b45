import logging
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rsboot.bootstrap.replica_bootstrap import clear_initiate_results


@pytest.fixture(autouse=True)
def _reset_process_state():
    clear_initiate_results()
    yield
    clear_initiate_results()
    # handlers bind the stdout of the test that called setup_logging
    logging.getLogger("rsboot").handlers.clear()
