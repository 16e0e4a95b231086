"""
Statement export: engine output -> pandas DataFrame -> CSV / XLSX bytes.
"""

import dataclasses
import io
from typing import Dict

import pandas as pd

from franchise_engine.models import EngineOutput

STATEMENTS = ("monthly", "annual")
FORMATS = ("csv", "xlsx")

MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def statement_frame(output: EngineOutput, statement: str) -> pd.DataFrame:
    if statement == "monthly":
        rows = output.monthly_projections
    elif statement == "annual":
        rows = output.annual_summaries
    else:
        raise ValueError(f"Unknown statement '{statement}'. Expected one of {', '.join(STATEMENTS)}")
    return pd.DataFrame([dataclasses.asdict(row) for row in rows])


def export_sheets(output: EngineOutput) -> Dict[str, pd.DataFrame]:
    """All statements keyed by sheet name, plus the identity check report."""
    return {
        "monthly": statement_frame(output, "monthly"),
        "annual": statement_frame(output, "annual"),
        "valuation": pd.DataFrame([dataclasses.asdict(v) for v in output.valuation]),
        "roic": pd.DataFrame([dataclasses.asdict(r) for r in output.roic_extended]),
        "pl_analysis": pd.DataFrame([dataclasses.asdict(p) for p in output.pl_analysis]),
        "identity_checks": pd.DataFrame([dataclasses.asdict(c) for c in output.identity_checks]),
    }


def export_statement(output: EngineOutput, statement: str = "monthly", fmt: str = "csv") -> bytes:
    """
    Render one statement as CSV, or every statement as an XLSX workbook whose
    first sheet is the requested one.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format '{fmt}'. Expected one of {', '.join(FORMATS)}")

    df = statement_frame(output, statement)
    if fmt == "csv":
        return df.to_csv(index=False).encode("utf-8")

    sheets = export_sheets(output)
    ordered = {statement: sheets.pop(statement), **sheets}
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, frame in ordered.items():
            frame.to_excel(writer, index=False, sheet_name=sheet_name[:31])
    return buffer.getvalue()
