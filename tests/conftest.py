# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from xlupload.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a real .xlsx file (no header / index) with the given sheets."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def excel_factory():
    return make_excel


@pytest.fixture()
def employees_xlsx(temp_workdir: Path) -> Path:
    rows: list[list[object]] = [["emp_no", "name", "dept"]]
    rows += [[i, f"emp{i}", "sales" if i % 2 else "hr"] for i in range(1, 12)]
    return make_excel(
        temp_workdir / "data" / "employees.xlsx",
        {"Employees": rows, "Depts": [["code", "label"], ["hr", "Human Resources"]]},
    )


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source: ./data/employees.xlsx
sheet: Employees
operation_id: insertEmployees
start_row: 1
commit_count: 5
backend: legacy
mapper:
  type: columns
  options:
    columns: [emp_no, name, dept]
    null_sentinels: ["NULL"]
operations:
  insertEmployees:
    table: employees
    columns: [emp_no, name, dept]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "upload.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
