# tests/test_utils.py

import json

import pytest

from app.calculator.engine import compute_monthly_summary
from app.calculator.entities import (Employee, Expense, FlatScheme, Location, Product, ProductSale,
                                     SalesEntry, Supplier)
from app.main.utils import (describe_breakdown, export_entities_json, export_results_csv, export_summary_json,
                            format_currency, format_number, format_percent, format_rate,
                            prepare_dashboard_data)


@pytest.fixture
def small_month():
    suppliers = [Supplier('s1', 'Beans Co', (Product('p1', 'Beans', 2.0), Product('p2', 'Cups', 0.5)))]
    employees = [Employee('e1', 'Ava', FlatScheme(0.1))]
    sales = [SalesEntry('e1', (1000,))]
    product_sales = [ProductSale('p1', 3)]
    locations = [Location('l1', 'Main St', 500)]
    expenses = [Expense('x1', 'Internet', 60)]
    summary = compute_monthly_summary(suppliers, employees, sales, product_sales, locations, expenses)
    return summary, suppliers, employees, locations, expenses


@pytest.mark.parametrize('amount, expected', [
    (1234.5, '$1,234.50'),
    (-1234.5, '-$1,234.50'),
    (0, '$0.00'),
    (float('inf'), '$--'),
    (float('nan'), '$--'),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_other_formatters():
    assert format_currency(12, '€') == '€12.00'
    assert format_percent(70.7792) == '70.8%'
    assert format_rate(0.125) == '12.5%'
    assert format_number(1234567.0) == '1,234,567'
    assert format_number(2.5) == '2.5'


def test_results_csv(small_month):
    summary, _, _, locations, expenses = small_month
    lines = export_results_csv(summary, locations, expenses).splitlines()

    assert lines == [
        'Type,Name,Amount,Details',
        'Commission,Ava,$100.00,"Sales: $1,000.00"',
        'Supplier Cost,Beans Co,$6.00,Beans: 3 units',
        'Location Rent,Main St,$500.00,',
        'Expense,Internet,$60.00,',
        '',
        'Total Revenue,,"$1,000.00",',
        'Total Supplier Costs,,$6.00,',
        'Total Commissions,,$100.00,',
        'Total Location Costs,,$500.00,',
        'Total Expenses,,$60.00,',
        'Gross Profit,,$334.00,',
    ]


def test_summary_json_carries_every_field(small_month):
    summary = small_month[0]
    document = json.loads(export_summary_json(summary))

    assert document['grossProfit'] == pytest.approx(334)
    employee = document['employeeBreakdown'][0]
    assert set(employee) == {'employeeId', 'employeeName', 'totalSales', 'commissionAmount', 'commissionType',
                             'tieredMode', 'hoursWorked', 'breakdown'}
    assert employee['breakdown'] == [{'rangeStart': 0, 'rangeEnd': 1000, 'rate': 0.1, 'amount': 100.0}]
    line = document['supplierBreakdown'][0]['lines'][1]
    assert line == {'productId': 'p2', 'productName': 'Cups', 'quantitySold': 0, 'costPerUnit': 0.5,
                    'lineTotal': 0}


def test_exported_entities_use_import_format(small_month):
    _, suppliers, employees, _, _ = small_month
    document = json.loads(export_entities_json(suppliers=suppliers, employees=employees))

    assert document['suppliers'][0]['products'][0] == {'id': 'p1', 'name': 'Beans', 'costPerUnit': 2.0}
    assert document['employees'][0] == {'id': 'e1', 'name': 'Ava', 'commissionType': 'flat', 'flatRate': 0.1}
    assert [Supplier.from_dict(s) for s in document['suppliers']] == suppliers


def test_dashboard_data_drops_empty_slices(small_month):
    data = prepare_dashboard_data(small_month[0])

    assert [slice_['name'] for slice_ in data['paymentDistribution']] == [
        'Supplier Costs', 'Commissions', 'Fixed Costs', 'Profit'
    ]
    assert data['employeeComparison'] == [{'name': 'Ava', 'sales': 1000, 'commission': 100.0}]


def test_dashboard_data_hides_profit_on_a_loss():
    summary = compute_monthly_summary([], [], [], expenses=[Expense('x', 'Rent', 100)])
    data = prepare_dashboard_data(summary)
    assert data['paymentDistribution'] == [{'name': 'Fixed Costs', 'value': 100}]


def test_describe_breakdown_lists_tier_segments():
    from app.calculator.engine import preview_commission
    from app.calculator.entities import CommissionTier, TieredMode, TieredScheme

    employee = Employee('e2', 'Ben', TieredScheme(TieredMode.FLAT, (CommissionTier(0, 0.04), CommissionTier(800, 0.06))))
    assert describe_breakdown(preview_commission(employee, 920), '€') == ['€920.00 at 6.0% = €55.20']

    assert describe_breakdown(preview_commission(Employee('e1', 'Ava', FlatScheme(0.1)), 500)) == []


def test_dashboard_margin_label(small_month):
    assert prepare_dashboard_data(small_month[0])['profitMarginLabel'] == '33.4%'
