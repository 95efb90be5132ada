"""Excel export pack builders for vehicle and portfolio equity reports."""

from __future__ import annotations

from datetime import datetime
from io import BytesIO
import re
from typing import Any

import numpy as np
import pandas as pd
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from carequity.calculations.portfolio import portfolio_frame
from carequity.calculations.projection import projections_to_frame
from carequity.models.portfolio import PortfolioResult, VehicleModelSummary
from carequity.utils.date_utils import resolve_as_of

SHEET_NAMES = {
    'summary_metadata': 'Summary_Metadata',
    'projection': 'Projection',
    'swap_window': 'Swap_Window',
    'vehicles': 'Vehicles',
    'failures': 'Failures',
}


def default_report_filename(label: str, as_of: pd.Timestamp | None = None) -> str:
    """Return a deterministic export filename."""
    safe_label = re.sub(r'[^A-Za-z0-9_-]+', '_', str(label or 'vehicle')).strip('_') or 'vehicle'
    as_of_s = resolve_as_of(as_of).date().isoformat()
    return f'equity_report_{safe_label}_{as_of_s}.xlsx'


def _metadata_frame(rows: list[tuple[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame([{'Field': field, 'Value': value} for field, value in rows])


def build_vehicle_report_context(
    summary: VehicleModelSummary,
    *,
    label: str,
    as_of: pd.Timestamp | None = None,
) -> dict[str, pd.DataFrame]:
    """Collect the frames describing one vehicle's position and outlook."""
    metadata = _metadata_frame(
        [
            ('Vehicle', label),
            ('As Of', resolve_as_of(as_of).date().isoformat()),
            ('Generated At', datetime.now().isoformat(timespec='seconds')),
            ('Ownership Type', summary.ownership_type.value),
            ('Current Value', summary.current_value),
            ('Loan Balance', summary.loan_balance),
            ('Equity', summary.equity),
            ('Monthly Payment', summary.monthly_payment),
            ('Total Paid', summary.total_paid),
            ('Total Cost', summary.total_cost),
            ('Monthly Cost of Ownership', summary.monthly_cost_of_ownership),
            ('Depreciation %', summary.depreciation_rate_percent / 100.0),
            ('Financial Status', summary.financial_status),
            ('Break-Even Date', summary.break_even_date),
            ('Projected Equity at Maturity', summary.projected_equity_at_maturity),
        ]
    )
    window = summary.swap_window
    if window is None or not window.exists:
        swap = pd.DataFrame(columns=['start_month', 'end_month', 'peak_month', 'peak_equity', 'length_months', 'is_in_window'])
    else:
        swap = pd.DataFrame(
            [
                {
                    'start_month': window.start_month,
                    'end_month': window.end_month,
                    'peak_month': window.peak_month,
                    'peak_equity': window.peak_equity,
                    'length_months': window.length_months,
                    'is_in_window': window.is_in_window,
                }
            ]
        )
    return {
        'summary_metadata': metadata,
        'projection': projections_to_frame(list(summary.projections)),
        'swap_window': swap,
    }


def build_portfolio_report_context(
    result: PortfolioResult,
    *,
    as_of: pd.Timestamp | None = None,
) -> dict[str, pd.DataFrame]:
    """Collect the frames describing a whole portfolio."""
    snap = result.snapshot
    metadata = _metadata_frame(
        [
            ('As Of', resolve_as_of(as_of).date().isoformat()),
            ('Generated At', datetime.now().isoformat(timespec='seconds')),
            ('Vehicle Count', snap.vehicle_count),
            ('Total Value', snap.total_value),
            ('Total Loan Balance', snap.total_loan_balance),
            ('Total Equity', snap.total_equity),
            ('Total Monthly Payments', snap.total_monthly_payments),
            ('Avg Depreciation %', snap.avg_depreciation_rate_percent / 100.0),
            ('Failed Count', len(result.failures)),
        ]
    )
    failures = pd.DataFrame(
        [
            {'vehicle_id': f.vehicle_id, 'error_type': f.error_type, 'field': f.field, 'message': f.message}
            for f in result.failures
        ],
        columns=['vehicle_id', 'error_type', 'field', 'message'],
    )
    return {
        'summary_metadata': metadata,
        'vehicles': portfolio_frame(result.models),
        'failures': failures,
    }


def _number_format(header: str, row_label: str) -> str:
    # metadata sheets carry the label in column A, frame sheets in the header
    if '%' in header or '%' in row_label:
        return '0.0%'
    if 'month' in header or 'count' in header or 'count' in row_label:
        return '#,##0'
    return '#,##0.00'


def _format_worksheet(ws) -> None:
    ws.freeze_panes = 'A2'
    for cell in ws[1]:
        cell.font = Font(bold=True)
    headers = [str(cell.value or '').strip().lower() for cell in ws[1]]

    for row in ws.iter_rows(min_row=2):
        row_label = str(row[0].value or '').lower()
        for header, cell in zip(headers, row):
            if isinstance(cell.value, (pd.Timestamp, datetime)):
                cell.number_format = 'YYYY-MM-DD'
            elif isinstance(cell.value, (int, float, np.integer, np.floating)) and not isinstance(cell.value, bool):
                cell.number_format = _number_format(header, row_label)

    for idx, column in enumerate(ws.iter_cols(max_row=200), start=1):
        widest = max((len(str(c.value)) for c in column if c.value is not None), default=0)
        ws.column_dimensions[get_column_letter(idx)].width = min(max(10, widest + 2), 60)


def build_report_workbook_bytes(context: dict[str, pd.DataFrame], *, workbook_title: str) -> bytes:
    """Serialize a report context into an Excel workbook, one sheet per frame."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        for key, frame in context.items():
            sheet_name = SHEET_NAMES.get(key, str(key)[:31])
            pd.DataFrame(frame).to_excel(writer, sheet_name=sheet_name, index=False)
            _format_worksheet(writer.sheets[sheet_name])
        writer.book.properties.title = str(workbook_title)
    return output.getvalue()
