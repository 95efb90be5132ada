from __future__ import annotations

from io import BytesIO

import pandas as pd
from openpyxl import load_workbook

from carequity.calculations.financial_model import calculate_financial_model
from carequity.calculations.portfolio import build_portfolio
from carequity.models.agreement import FinancingAgreement, VehicleIdentity
from carequity.models.portfolio import PortfolioEntry
from carequity.reporting.export_pack import (
    build_portfolio_report_context,
    build_report_workbook_bytes,
    build_vehicle_report_context,
    default_report_filename,
)

AS_OF = pd.Timestamp('2025-01-15')
VEHICLE = VehicleIdentity(make='Ford', model='Focus', year=2023)


def _cash() -> FinancingAgreement:
    return FinancingAgreement(purchase_price=10000.0, start_date='2024-01-15', ownership_type='cash')


def test_default_report_filename_is_deterministic() -> None:
    assert default_report_filename('My Car!', AS_OF) == 'equity_report_My_Car_2025-01-15.xlsx'
    assert default_report_filename('', AS_OF) == 'equity_report_vehicle_2025-01-15.xlsx'


def test_vehicle_report_workbook_round_trip() -> None:
    summary = calculate_financial_model(_cash(), VEHICLE, as_of=AS_OF)
    context = build_vehicle_report_context(summary, label='Focus', as_of=AS_OF)
    payload = build_report_workbook_bytes(context, workbook_title='Focus equity')

    sheets = pd.read_excel(BytesIO(payload), sheet_name=None)
    assert set(sheets) == {'Summary_Metadata', 'Projection', 'Swap_Window'}
    assert len(sheets['Projection']) == 61
    assert 'trade_in_equity' in sheets['Projection'].columns
    assert 'Equity' in sheets['Summary_Metadata']['Field'].tolist()
    swap = sheets['Swap_Window']
    assert swap['start_month'].tolist() == [0]
    assert swap['end_month'].tolist() == [60]
    assert swap['length_months'].tolist() == [61]


def test_portfolio_report_lists_failures() -> None:
    entries = [
        PortfolioEntry('cash-1', _cash(), VEHICLE),
        PortfolioEntry('lease-1', FinancingAgreement(purchase_price=30000.0, start_date=None, ownership_type='lease'), VEHICLE),
    ]
    result = build_portfolio(entries, as_of=AS_OF)
    context = build_portfolio_report_context(result, as_of=AS_OF)
    payload = build_report_workbook_bytes(context, workbook_title='Fleet')

    sheets = pd.read_excel(BytesIO(payload), sheet_name=None)
    assert sheets['Vehicles']['vehicle_id'].tolist() == ['cash-1']
    assert sheets['Failures']['vehicle_id'].tolist() == ['lease-1']
    assert sheets['Failures']['error_type'].tolist() == ['InsufficientData']


def test_report_sheets_are_formatted() -> None:
    summary = calculate_financial_model(_cash(), VEHICLE, as_of=AS_OF)
    context = build_vehicle_report_context(summary, label='Focus', as_of=AS_OF)
    book = load_workbook(BytesIO(build_report_workbook_bytes(context, workbook_title='Focus equity')))

    meta = book['Summary_Metadata']
    assert meta.freeze_panes == 'A2'
    assert meta['A1'].font.bold
    rows = {row[0].value: row[1] for row in meta.iter_rows(min_row=2)}
    assert rows['Depreciation %'].number_format == '0.0%'
    assert rows['Equity'].number_format == '#,##0.00'

    projection = book['Projection']
    headers = [cell.value for cell in projection[1]]
    month_col = headers.index('month_index')
    assert projection.cell(row=3, column=month_col + 1).number_format == '#,##0'
