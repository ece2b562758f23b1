# ==============================================================================
# app/main/utils.py
# ------------------------------------------------------------------------------
# Formatting, settings lookup and export helpers shared by the API routes.
# ==============================================================================
import json
import math

import pandas as pd
from flask import current_app

from app.calculator.entities import CommissionType
from app.models import AppSetting


# --- Formatting ---

def format_currency(amount, currency_symbol='$'):
    """
    Formats an amount with two decimals and thousands separators.
    Example: -1234.5 -> "-$1,234.50"
    """
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return f"{currency_symbol}--"
    if not math.isfinite(value):
        return f"{currency_symbol}--"
    sign = '-' if value < 0 else ''
    return f"{sign}{currency_symbol}{abs(value):,.2f}"


def format_percent(value, decimals=1):
    return f"{value:.{decimals}f}%"


def format_rate(rate):
    """0.125 -> "12.5%" """
    return f"{rate * 100:.1f}%"


def format_number(value):
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


# --- Settings ---

def load_app_settings():
    """Returns every AppSetting as {key: typed value}."""
    return {s.key: s.get_value() for s in AppSetting.query.all()}


def get_currency_symbol():
    symbol = load_app_settings().get('CURRENCY_SYMBOL')
    return symbol or current_app.config.get('DEFAULT_CURRENCY_SYMBOL', '$')


# --- Dashboard Data ---

def prepare_dashboard_data(summary):
    """
    Derives chart-ready series from a MonthlySummary: how each sales dollar
    was spent, and sales vs. commission per employee. Zero slices are dropped
    from the distribution and a loss shows as no profit slice.
    """
    distribution = [
        {'name': 'Supplier Costs', 'value': summary.total_supplier_cost},
        {'name': 'Commissions', 'value': summary.total_commissions},
        {'name': 'Fixed Costs', 'value': summary.total_location_costs + summary.total_expenses},
        {'name': 'Profit', 'value': max(0, summary.gross_profit)},
    ]
    return {
        'profitMarginLabel': format_percent(summary.profit_margin_percent),
        'paymentDistribution': [d for d in distribution if d['value'] > 0],
        'employeeComparison': [
            {'name': e.employee_name, 'sales': e.total_sales, 'commission': e.commission_amount}
            for e in summary.employee_breakdown
        ],
    }


def describe_breakdown(result, currency_symbol='$'):
    """
    One line per tier segment of a tiered CommissionResult, e.g.
    "$1,000.00 at 5.0% = $50.00". Flat and hourly results have no lines.
    """
    if result.commission_type is not CommissionType.TIERED:
        return []
    return [
        f"{format_currency(segment.width, currency_symbol)} at {format_rate(segment.rate)} = "
        f"{format_currency(segment.amount, currency_symbol)}"
        for segment in result.breakdown
    ]


# --- Exports ---

def export_entities_json(**collections):
    """Serializes entity lists in the import format, e.g. export_entities_json(suppliers=[...])."""
    document = {key: [item.to_dict() for item in items] for key, items in collections.items()}
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_summary_json(summary):
    return json.dumps(summary.to_dict(), indent=2, ensure_ascii=False)


def export_results_csv(summary, locations, expenses, currency_symbol='$'):
    """
    Builds the results CSV: one row per commission, supplier cost, location
    rent and expense, a blank line, then the month's totals.

    Returns:
        str: CSV text with a `Type,Name,Amount,Details` header.
    """
    columns = ['Type', 'Name', 'Amount', 'Details']
    rows = []

    for e in summary.employee_breakdown:
        rows.append(['Commission', e.employee_name,
                     format_currency(e.commission_amount, currency_symbol),
                     f"Sales: {format_currency(e.total_sales, currency_symbol)}"])

    for s in summary.supplier_breakdown:
        sold = [f"{line.product_name}: {format_number(line.quantity_sold)} units"
                for line in s.lines if line.quantity_sold > 0]
        rows.append(['Supplier Cost', s.supplier_name, format_currency(s.total, currency_symbol), '; '.join(sold)])

    for location in locations:
        rows.append(['Location Rent', location.name, format_currency(location.monthly_rent, currency_symbol), ''])

    for expense in expenses:
        rows.append(['Expense', expense.name, format_currency(expense.amount, currency_symbol), ''])

    totals = [
        ('Total Revenue', summary.total_revenue),
        ('Total Supplier Costs', summary.total_supplier_cost),
        ('Total Commissions', summary.total_commissions),
        ('Total Location Costs', summary.total_location_costs),
        ('Total Expenses', summary.total_expenses),
        ('Gross Profit', summary.gross_profit),
    ]
    totals_rows = [[label, '', format_currency(value, currency_symbol), ''] for label, value in totals]

    detail_csv = pd.DataFrame(rows, columns=columns).to_csv(index=False, lineterminator='\n')
    totals_csv = pd.DataFrame(totals_rows, columns=columns).to_csv(index=False, header=False, lineterminator='\n')
    return detail_csv + '\n' + totals_csv
