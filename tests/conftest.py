from pathlib import Path

import pytest

from salesinsight.config import load_config
from salesinsight.preprocessing import load_sales_rows


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Path to the project root (where config.yaml lives)."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def config_obj(project_root: Path):
    """Loaded Config object from config.yaml."""
    return load_config(project_root / "config.yaml")


@pytest.fixture(scope="session")
def sample_rows(project_root: Path):
    """Rows from the bundled sample CSV, loaded through the full pipeline."""
    rows, _report, _cfg = load_sales_rows(
        project_root / "config.yaml",
        input_path=project_root / "data" / "raw" / "sample_sales.csv",
    )
    return rows


def make_row(date, product, category, units, price, **extra):
    row = {"date": date, "product": product, "category": category, "units": units, "price": price}
    row.update(extra)
    return row
