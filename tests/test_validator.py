# tests/test_validator.py

import json

import pytest

from app.calculator.entities import HourlyScheme, TieredMode, TieredScheme
from app.calculator.validator import (parse_employees_json, parse_import_json, parse_sales_json,
                                      parse_suppliers_json, validate_employees, validate_product_sales,
                                      validate_sales, validate_suppliers)


@pytest.fixture
def suppliers_document():
    return {'suppliers': [
        {'id': 's1', 'name': 'Hilltop Roastery', 'products': [
            {'id': 'p1', 'name': 'Beans', 'costPerUnit': 18.5},
            {'id': 'p2', 'name': 'Decaf', 'costPerUnit': 0},
        ]},
        {'id': 's2', 'name': 'Valley Dairy', 'products': []},
    ]}


@pytest.fixture
def employees_document():
    return {'employees': [
        {'id': 'e1', 'name': 'Ava', 'commissionType': 'flat', 'flatRate': 0.05},
        {'id': 'e2', 'name': 'Ben', 'commissionType': 'tiered', 'tieredMode': 'marginal', 'tiers': [
            {'threshold': 0, 'rate': 0.05},
            {'threshold': 1000, 'rate': 0.1},
        ]},
        {'id': 'e3', 'name': 'Dev', 'commissionType': 'hourly', 'hourlyRate': 16},
    ]}


# --- Suppliers ---

def test_valid_suppliers(suppliers_document):
    result = validate_suppliers(suppliers_document)
    assert result.valid
    assert result.errors == []


@pytest.mark.parametrize('data, message', [
    (None, "Data must be a JSON object"),
    ([1, 2], "Data must be a JSON object"),
    ({}, "Missing 'suppliers' array"),
    ({'suppliers': 'nope'}, "Missing 'suppliers' array"),
])
def test_suppliers_document_shape(data, message):
    assert validate_suppliers(data) == (False, [message])


def test_supplier_errors_are_all_reported():
    document = {'suppliers': [
        {'id': 's1', 'name': 'A', 'products': [{'id': 'p1', 'name': 'Beans', 'costPerUnit': -1}]},
        {'id': 's1', 'name': '', 'products': [{'id': 'p1', 'name': 'Beans again', 'costPerUnit': True}]},
        {'id': 's3', 'name': 'C'},
    ]}
    result = validate_suppliers(document)

    assert not result.valid
    assert result.errors == [
        "Supplier[0].products[0]: 'costPerUnit' must be a non-negative number",
        "Supplier[1]: missing or invalid 'name'",
        "Supplier[1]: duplicate id 's1'",
        "Supplier[1].products[0]: 'costPerUnit' must be a non-negative number",
        "Supplier[1].products[0]: duplicate product id 'p1'",
        "Supplier[2]: missing 'products' array",
    ]


# --- Employees ---

def test_valid_employees(employees_document):
    assert validate_employees(employees_document).valid


def test_unknown_commission_type_skips_scheme_checks():
    result = validate_employees({'employees': [{'id': 'e1', 'name': 'Ava', 'commissionType': 'bonus'}]})
    assert result.errors == ["Employee[0]: 'commissionType' must be 'flat', 'tiered', or 'hourly'"]


def test_scheme_field_errors():
    document = {'employees': [
        {'id': 'e1', 'name': 'Ava', 'commissionType': 'flat', 'flatRate': 1.5},
        {'id': 'e2', 'name': 'Dev', 'commissionType': 'hourly', 'hourlyRate': -3},
        {'id': 'e3', 'name': 'Ben', 'commissionType': 'tiered', 'tieredMode': 'stepped', 'tiers': []},
    ]}
    assert validate_employees(document).errors == [
        "Employee[0]: 'flatRate' must be a number between 0 and 1",
        "Employee[1]: 'hourlyRate' must be a non-negative number",
        "Employee[2]: 'tieredMode' must be 'flat' or 'marginal'",
        "Employee[2]: 'tiers' must be a non-empty array",
    ]


def test_tier_thresholds_must_be_strictly_ascending():
    document = {'employees': [{'id': 'e1', 'name': 'Ben', 'commissionType': 'tiered', 'tieredMode': 'flat',
                               'tiers': [
                                   {'threshold': 0, 'rate': 0.05},
                                   {'threshold': 1000, 'rate': 0.1},
                                   {'threshold': 1000, 'rate': 0.12},
                                   {'threshold': 500, 'rate': 2},
                               ]}]}
    assert validate_employees(document).errors == [
        "Employee[0].tiers[2]: thresholds must be strictly ascending",
        "Employee[0].tiers[3]: 'rate' must be a number between 0 and 1",
        "Employee[0].tiers[3]: thresholds must be strictly ascending",
    ]


# --- Sales ---

def test_sales_accept_daily_and_legacy_entries():
    document = {'sales': [
        {'employeeId': 'e1', 'dailySales': [100, 250.5]},
        {'employeeId': 'e2', 'dailySales': [300], 'dailyHours': [8]},
        {'employeeId': 'e3', 'totalSalesDollars': 900, 'productSales': [{'productId': 'p1', 'quantitySold': 2}]},
    ]}
    assert validate_sales(document).valid


def test_sales_errors():
    document = {'sales': [
        {'employeeId': 'e1', 'dailySales': [100, 'x'], 'dailyHours': [-1]},
        {'employeeId': 'e1'},
        {'employeeId': 'e2', 'dailySales': [], 'productSales': [{'productId': 'p1', 'quantitySold': -4}]},
    ]}
    assert validate_sales(document).errors == [
        "Sales[0].dailySales[1]: must be a number",
        "Sales[0].dailyHours[0]: must be a non-negative number",
        "Sales[1]: duplicate employeeId 'e1'",
        "Sales[1]: 'dailySales' must be an array of numbers",
        "Sales[2].productSales[0]: 'quantitySold' must be a non-negative number",
    ]


def test_product_sales_document():
    assert validate_product_sales({'productSales': [{'productId': 'p1', 'quantitySold': 3}]}).valid
    assert validate_product_sales({'productSales': [{'quantitySold': 3}]}).errors == [
        "ProductSale[0]: missing or invalid 'productId'"
    ]


# --- Parsing ---

def test_parse_invalid_json():
    suppliers, validation = parse_suppliers_json('{not json')
    assert suppliers is None
    assert validation == (False, ["Invalid JSON format"])


def test_parse_employees_builds_schemes(employees_document):
    employees, validation = parse_employees_json(json.dumps(employees_document))

    assert validation.valid
    assert employees[1].scheme == TieredScheme(TieredMode.MARGINAL, employees[1].scheme.tiers)
    assert [t.threshold for t in employees[1].scheme.tiers] == [0, 1000]
    assert employees[2].scheme == HourlyScheme(16)


def test_parse_legacy_sales_migrates_to_daily_series():
    raw = json.dumps({'sales': [
        {'employeeId': 'e1', 'totalSalesDollars': 900,
         'productSales': [{'productId': 'p1', 'quantitySold': 2}, {'productId': 'p2', 'quantitySold': 1}]},
        {'employeeId': 'e2', 'totalSalesDollars': 400, 'productSales': [{'productId': 'p1', 'quantitySold': 5}]},
    ]})
    (entries, product_sales), validation = parse_sales_json(raw)

    assert validation.valid
    assert entries[0].daily_sales == (900,)
    assert [(ps.product_id, ps.quantity_sold) for ps in product_sales] == [('p1', 7), ('p2', 1)]


def test_import_detects_suppliers_then_employees(suppliers_document, employees_document):
    kind, items, errors = parse_import_json(json.dumps(suppliers_document))
    assert (kind, len(items), errors) == ('suppliers', 2, [])

    kind, items, errors = parse_import_json(json.dumps(employees_document))
    assert (kind, len(items), errors) == ('employees', 3, [])


def test_import_reports_both_attempts_when_nothing_matches():
    kind, items, errors = parse_import_json(json.dumps({'customers': []}))

    assert kind is None and items is None
    assert errors == ["Suppliers: Missing 'suppliers' array", "Employees: Missing 'employees' array"]


# --- Non-finite numbers ---
# json.loads accepts NaN, Infinity and out-of-range literals; none may reach storage.

@pytest.mark.parametrize('literal', ['NaN', 'Infinity', '-Infinity', '1e400'])
def test_non_finite_numbers_are_rejected_everywhere(literal):
    suppliers, validation = parse_suppliers_json(
        '{"suppliers": [{"id": "s", "name": "S", "products": '
        f'[{{"id": "p", "name": "P", "costPerUnit": {literal}}}]}}]}}'
    )
    assert suppliers is None
    assert validation.errors == ["Supplier[0].products[0]: 'costPerUnit' must be a non-negative number"]

    employees, validation = parse_employees_json(
        '{"employees": ['
        f'{{"id": "e1", "name": "A", "commissionType": "flat", "flatRate": {literal}}}, '
        f'{{"id": "e2", "name": "B", "commissionType": "hourly", "hourlyRate": {literal}}}, '
        '{"id": "e3", "name": "C", "commissionType": "tiered", "tieredMode": "flat", '
        f'"tiers": [{{"threshold": {literal}, "rate": 0.1}}]}}]}}'
    )
    assert employees is None
    assert validation.errors == [
        "Employee[0]: 'flatRate' must be a number between 0 and 1",
        "Employee[1]: 'hourlyRate' must be a non-negative number",
        "Employee[2].tiers[0]: 'threshold' must be a non-negative number",
    ]

    result, validation = parse_sales_json(
        '{"sales": ['
        f'{{"employeeId": "e1", "dailySales": [100, {literal}], "dailyHours": [{literal}]}}, '
        f'{{"employeeId": "e2", "totalSalesDollars": {literal}, '
        f'"productSales": [{{"productId": "p", "quantitySold": {literal}}}]}}]}}'
    )
    assert result is None
    assert validation.errors == [
        "Sales[0].dailySales[1]: must be a number",
        "Sales[0].dailyHours[0]: must be a non-negative number",
        "Sales[1]: 'dailySales' must be an array of numbers",
        "Sales[1].productSales[0]: 'quantitySold' must be a non-negative number",
    ]


def test_integers_too_large_for_a_float_are_rejected():
    validation = validate_product_sales({'productSales': [{'productId': 'p', 'quantitySold': 10 ** 400}]})
    assert validation.errors == ["ProductSale[0]: 'quantitySold' must be a non-negative number"]
