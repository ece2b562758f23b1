# ==============================================================================
# app/calculator/validator.py
# ------------------------------------------------------------------------------
# Handles the structural validation of imported supplier, employee and sales
# JSON documents. Validation never raises; every problem found is reported so
# the whole file can be fixed in one pass.
# ==============================================================================

import json
import math
from collections import namedtuple

from .entities import Employee, ProductSale, SalesEntry, Supplier
from .schema import COMMISSION_TYPES, EXPECTED_FIELDS, IMPORT_COLLECTIONS, TIERED_MODES

ValidationResult = namedtuple('ValidationResult', ['valid', 'errors'])


def _is_number(value):
    """True for finite ints and floats. json.loads lets NaN, Infinity and 1e400 through."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers too large for a float
        return False


def _check_fields(record, rules, prefix, errors):
    """Applies one EXPECTED_FIELDS entry to a record, appending messages to errors."""
    for name in rules.get('required_strings', []):
        value = record.get(name)
        if not value or not isinstance(value, str):
            errors.append(f"{prefix}: missing or invalid '{name}'")

    for name in rules.get('non_negative_numbers', []):
        value = record.get(name)
        if not _is_number(value) or value < 0:
            errors.append(f"{prefix}: '{name}' must be a non-negative number")

    for name in rules.get('rates', []):
        value = record.get(name)
        if not _is_number(value) or not 0 <= value <= 1:
            errors.append(f"{prefix}: '{name}' must be a number between 0 and 1")

    for name in rules.get('arrays', []):
        if not isinstance(record.get(name), list):
            errors.append(f"{prefix}: missing '{name}' array")


def _check_unique_id(value, seen, prefix, errors, label='id'):
    # Missing ids are already reported by _check_fields.
    if not value or not isinstance(value, str):
        return
    if value in seen:
        errors.append(f"{prefix}: duplicate {label} '{value}'")
    else:
        seen.add(value)


def _collection(data, key):
    """Returns (records, errors) for the top-level array `key` of an import document."""
    if not isinstance(data, dict):
        return None, ["Data must be a JSON object"]
    if not isinstance(data.get(key), list):
        return None, [f"Missing '{key}' array"]
    return data[key], []


def _as_record(item, prefix, errors):
    if isinstance(item, dict):
        return item
    errors.append(f"{prefix}: must be an object")
    return None


# --- Suppliers ---

def validate_suppliers(data):
    """
    Validates a {"suppliers": [...]} document.

    Product ids must be unique across the whole batch, not only within one
    supplier, since sales refer to products by id alone.

    Returns:
        ValidationResult: valid flag and the list of human-readable errors.
    """
    records, errors = _collection(data, 'suppliers')
    if records is None:
        return ValidationResult(False, errors)

    label = IMPORT_COLLECTIONS['suppliers']
    seen_supplier_ids = set()
    seen_product_ids = set()

    for i, item in enumerate(records):
        prefix = f"{label}[{i}]"
        supplier = _as_record(item, prefix, errors)
        if supplier is None:
            continue

        _check_fields(supplier, EXPECTED_FIELDS['supplier'], prefix, errors)
        _check_unique_id(supplier.get('id'), seen_supplier_ids, prefix, errors)

        products = supplier.get('products')
        if not isinstance(products, list):
            continue

        for j, product_item in enumerate(products):
            p_prefix = f"{prefix}.products[{j}]"
            product = _as_record(product_item, p_prefix, errors)
            if product is None:
                continue
            _check_fields(product, EXPECTED_FIELDS['product'], p_prefix, errors)
            _check_unique_id(product.get('id'), seen_product_ids, p_prefix, errors, label='product id')

    return ValidationResult(not errors, errors)


# --- Employees ---

def _check_tiers(employee, prefix, errors):
    tiers = employee.get('tiers')
    if not isinstance(tiers, list) or not tiers:
        errors.append(f"{prefix}: 'tiers' must be a non-empty array")
        return

    previous_threshold = None
    for j, tier_item in enumerate(tiers):
        t_prefix = f"{prefix}.tiers[{j}]"
        tier = _as_record(tier_item, t_prefix, errors)
        if tier is None:
            continue
        _check_fields(tier, EXPECTED_FIELDS['tier'], t_prefix, errors)

        threshold = tier.get('threshold')
        if _is_number(threshold) and threshold >= 0:
            if previous_threshold is not None and threshold <= previous_threshold:
                errors.append(f"{t_prefix}: thresholds must be strictly ascending")
            previous_threshold = threshold


def validate_employees(data):
    """
    Validates an {"employees": [...]} document, including the fields required
    by each commission type.

    Returns:
        ValidationResult: valid flag and the list of human-readable errors.
    """
    records, errors = _collection(data, 'employees')
    if records is None:
        return ValidationResult(False, errors)

    label = IMPORT_COLLECTIONS['employees']
    seen_ids = set()

    for i, item in enumerate(records):
        prefix = f"{label}[{i}]"
        employee = _as_record(item, prefix, errors)
        if employee is None:
            continue

        _check_fields(employee, EXPECTED_FIELDS['employee'], prefix, errors)
        _check_unique_id(employee.get('id'), seen_ids, prefix, errors)

        commission_type = employee.get('commissionType')
        if commission_type not in COMMISSION_TYPES:
            errors.append(f"{prefix}: 'commissionType' must be 'flat', 'tiered', or 'hourly'")
            continue

        if commission_type == 'flat':
            _check_fields(employee, EXPECTED_FIELDS['flat'], prefix, errors)
        elif commission_type == 'hourly':
            _check_fields(employee, EXPECTED_FIELDS['hourly'], prefix, errors)
        else:
            if employee.get('tieredMode') not in TIERED_MODES:
                errors.append(f"{prefix}: 'tieredMode' must be 'flat' or 'marginal'")
            _check_tiers(employee, prefix, errors)

    return ValidationResult(not errors, errors)


# --- Sales ---

def _check_number_list(record, name, prefix, errors, non_negative=False):
    values = record.get(name)
    if not isinstance(values, list):
        errors.append(f"{prefix}: '{name}' must be an array of numbers")
        return
    for k, value in enumerate(values):
        if not _is_number(value) or (non_negative and value < 0):
            kind = 'a non-negative number' if non_negative else 'a number'
            errors.append(f"{prefix}.{name}[{k}]: must be {kind}")


def validate_sales(data):
    """
    Validates a {"sales": [...]} document. Entries carry a `dailySales` series
    or, in the older layout, a single `totalSalesDollars` figure; both may list
    `productSales`.
    """
    records, errors = _collection(data, 'sales')
    if records is None:
        return ValidationResult(False, errors)

    label = IMPORT_COLLECTIONS['sales']
    seen_employee_ids = set()

    for i, item in enumerate(records):
        prefix = f"{label}[{i}]"
        entry = _as_record(item, prefix, errors)
        if entry is None:
            continue

        _check_fields(entry, EXPECTED_FIELDS['sales_entry'], prefix, errors)
        _check_unique_id(entry.get('employeeId'), seen_employee_ids, prefix, errors, label='employeeId')

        if 'dailySales' in entry:
            _check_number_list(entry, 'dailySales', prefix, errors)
        elif not _is_number(entry.get('totalSalesDollars')):
            errors.append(f"{prefix}: 'dailySales' must be an array of numbers")

        if 'dailyHours' in entry:
            _check_number_list(entry, 'dailyHours', prefix, errors, non_negative=True)

        product_sales = entry.get('productSales')
        if product_sales is None:
            continue
        if not isinstance(product_sales, list):
            errors.append(f"{prefix}: 'productSales' must be an array")
            continue
        _check_product_sales(product_sales, f"{prefix}.productSales", errors)

    return ValidationResult(not errors, errors)


def _check_product_sales(records, prefix, errors):
    for j, item in enumerate(records):
        ps_prefix = f"{prefix}[{j}]"
        product_sale = _as_record(item, ps_prefix, errors)
        if product_sale is not None:
            _check_fields(product_sale, EXPECTED_FIELDS['product_sale'], ps_prefix, errors)


def validate_product_sales(data):
    """Validates a {"productSales": [...]} document of business-wide quantities."""
    records, errors = _collection(data, 'productSales')
    if records is None:
        return ValidationResult(False, errors)
    _check_product_sales(records, IMPORT_COLLECTIONS['productSales'], errors)
    return ValidationResult(not errors, errors)


# --- Parsing Helpers ---

def _decode(raw):
    try:
        return json.loads(raw), None
    except (TypeError, ValueError):
        return None, ValidationResult(False, ["Invalid JSON format"])


def parse_suppliers_json(raw):
    """
    Decodes and validates a suppliers document.

    Returns:
        tuple: (list of Supplier or None, ValidationResult)
    """
    data, failure = _decode(raw)
    if failure:
        return None, failure
    validation = validate_suppliers(data)
    if not validation.valid:
        return None, validation
    return [Supplier.from_dict(s) for s in data['suppliers']], validation


def parse_employees_json(raw):
    """Decodes and validates an employees document; returns (list of Employee or None, ValidationResult)."""
    data, failure = _decode(raw)
    if failure:
        return None, failure
    validation = validate_employees(data)
    if not validation.valid:
        return None, validation
    return [Employee.from_dict(e) for e in data['employees']], validation


def sales_from_document(data):
    """
    Builds (sales entries, business-wide product sales) from an already
    validated sales document. Per-entry productSales of the older layout are
    summed by product id, in first-seen order.
    """
    entries = [SalesEntry.from_dict(s) for s in data['sales']]
    nested = [ps for s in data['sales'] for ps in s.get('productSales') or []]
    return entries, product_sales_from_records(nested)


def product_sales_from_records(records):
    """Builds ProductSale entities, summing quantities of repeated product ids in first-seen order."""
    quantities = {}
    for ps in records:
        quantities[ps['productId']] = quantities.get(ps['productId'], 0) + ps['quantitySold']
    return [ProductSale(product_id=pid, quantity_sold=qty) for pid, qty in quantities.items()]


def parse_sales_json(raw):
    """Returns ((entries, product_sales) or None, ValidationResult)."""
    data, failure = _decode(raw)
    if failure:
        return None, failure
    validation = validate_sales(data)
    if not validation.valid:
        return None, validation
    return sales_from_document(data), validation


def parse_import_json(raw):
    """
    Detects whether an uploaded document holds suppliers or employees.

    Returns:
        tuple: ('suppliers' | 'employees' | None, parsed entities or None, errors)
    """
    suppliers, supplier_validation = parse_suppliers_json(raw)
    if suppliers is not None:
        return 'suppliers', suppliers, []

    employees, employee_validation = parse_employees_json(raw)
    if employees is not None:
        return 'employees', employees, []

    errors = [f"Suppliers: {e}" for e in supplier_validation.errors]
    errors += [f"Employees: {e}" for e in employee_validation.errors]
    return None, None, errors
