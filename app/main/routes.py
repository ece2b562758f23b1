# ==============================================================================
# app/main/routes.py
# ------------------------------------------------------------------------------
# JSON API for the payroll/cost calculator. Every request loads fresh entities
# from the database, so each computation is independent of the last.
# ==============================================================================

import math
import os
import uuid

from flask import current_app, jsonify, request, Response
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import MultiDict
from werkzeug.utils import secure_filename

from app import db
from app.main import bp
from app.models import (AppSetting, Employee, Expense, Location, ProductSale, SalesEntry,
                        Supplier, load_entities, replace_all)
from app.calculator import entities
from app.calculator.engine import compute_monthly_summary, compute_what_if, preview_commission
from app.calculator.validator import (parse_import_json, product_sales_from_records, sales_from_document,
                                      validate_employees, validate_product_sales, validate_sales,
                                      validate_suppliers)
from app.main.forms import (AppSettingForm, CommissionPreviewForm, ExpenseForm, LocationForm,
                            WhatIfForm)
from app.main.utils import (describe_breakdown, export_entities_json, export_results_csv,
                            export_summary_json, get_currency_symbol, load_app_settings,
                            prepare_dashboard_data)

# --- Helper Functions ---

def allowed_file(filename):
    """Checks if the file extension is allowed based on the app config."""
    return '.' in filename and \
           os.path.splitext(filename)[1].lower() in current_app.config['ALLOWED_EXTENSIONS']


def _errors(errors, status=400):
    return jsonify({'errors': errors}), status


def _json_formdata(**fields):
    """
    Maps camelCase JSON keys onto form field names, e.g.
    _json_formdata(monthly_rent='monthlyRent'). Values are passed as strings,
    the way a browser would submit them.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return MultiDict({name: str(payload[key]) for name, key in fields.items() if payload.get(key) is not None})


def _commit(action):
    """Commits the session; on a database error rolls back and returns a 500 response."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Database operation failed while {action}: {e}", exc_info=True)
        return _errors([f"Could not save changes while {action}."], 500)
    return None


def _download(body, filename, mimetype):
    return Response(body, mimetype=mimetype,
                    headers={'Content-Disposition': f'attachment; filename={filename}'})


def _summary(data):
    return compute_monthly_summary(data['suppliers'], data['employees'], data['sales'],
                                   data['product_sales'], data['locations'], data['expenses'])


# --- State ---

@bp.route('/api/state')
def state():
    """Returns every stored collection plus the settings."""
    data = load_entities()
    body = {key: [item.to_dict() for item in items] for key, items in data.items()}
    body['productSales'] = body.pop('product_sales')
    body['settings'] = load_app_settings()
    return jsonify(body)


# --- Suppliers & Employees (bulk replace) ---

@bp.route('/api/suppliers', methods=['GET', 'PUT'])
def suppliers():
    if request.method == 'GET':
        return jsonify({'suppliers': [s.to_dict() for s in load_entities()['suppliers']]})

    payload = request.get_json(silent=True)
    validation = validate_suppliers(payload)
    if not validation.valid:
        return _errors(validation.errors)

    new_suppliers = [entities.Supplier.from_dict(s) for s in payload['suppliers']]
    replace_all(Supplier, new_suppliers)
    failure = _commit('replacing suppliers')
    if failure:
        return failure
    current_app.logger.info(f"Replaced suppliers: {len(new_suppliers)} supplier(s).")
    return jsonify({'suppliers': [s.to_dict() for s in new_suppliers]})


@bp.route('/api/employees', methods=['GET', 'PUT'])
def employees():
    if request.method == 'GET':
        return jsonify({'employees': [e.to_dict() for e in load_entities()['employees']]})

    payload = request.get_json(silent=True)
    validation = validate_employees(payload)
    if not validation.valid:
        return _errors(validation.errors)

    new_employees = [entities.Employee.from_dict(e) for e in payload['employees']]
    replace_all(Employee, new_employees)
    failure = _commit('replacing employees')
    if failure:
        return failure
    current_app.logger.info(f"Replaced employees: {len(new_employees)} employee(s).")
    return jsonify({'employees': [e.to_dict() for e in new_employees]})


@bp.route('/api/import', methods=['POST'])
def import_file():
    """
    Accepts an uploaded JSON file holding either suppliers or employees and
    replaces that whole collection. Suppliers are tried first.
    """
    if 'file' not in request.files:
        return _errors(["No file part in the request."])

    file = request.files['file']
    if file.filename == '':
        return _errors(["No file selected."])
    if not allowed_file(file.filename):
        return _errors(["File type not allowed. Please upload a .json file."])

    filename = secure_filename(file.filename)
    try:
        raw = file.read().decode('utf-8')
    except UnicodeDecodeError:
        return _errors(["Could not read file. Make sure it is a valid JSON text file."])

    kind, items, errors = parse_import_json(raw)
    if kind is None:
        current_app.logger.warning(f"Rejected import '{filename}' with {len(errors)} error(s).")
        return _errors(errors)

    replace_all(Supplier if kind == 'suppliers' else Employee, items)
    failure = _commit(f'importing {kind}')
    if failure:
        return failure

    current_app.logger.info(f"Imported {len(items)} {kind} from '{filename}'.")
    return jsonify({'imported': kind, 'count': len(items),
                    'message': f"Imported {len(items)} {kind[:-1]}(s) successfully"})


# --- Sales ---

@bp.route('/api/sales', methods=['GET', 'PUT', 'DELETE'])
def sales():
    if request.method == 'GET':
        data = load_entities()
        return jsonify({'sales': [s.to_dict() for s in data['sales']],
                        'productSales': [p.to_dict() for p in data['product_sales']]})

    if request.method == 'DELETE':
        replace_all(SalesEntry, [])
        failure = _commit('clearing sales')
        return failure or jsonify({'sales': []})

    payload = request.get_json(silent=True)
    validation = validate_sales(payload)
    if not validation.valid:
        return _errors(validation.errors)

    entries, product_sales = sales_from_document(payload)
    replace_all(SalesEntry, entries)
    # Product quantities embedded in older monthly-total entries replace the
    # business-wide list; a daily-series document leaves it alone.
    if product_sales:
        replace_all(ProductSale, product_sales)
    failure = _commit('replacing sales')
    if failure:
        return failure
    return jsonify({'sales': [s.to_dict() for s in entries]})


@bp.route('/api/product-sales', methods=['PUT'])
def product_sales():
    payload = request.get_json(silent=True)
    validation = validate_product_sales(payload)
    if not validation.valid:
        return _errors(validation.errors)

    items = product_sales_from_records(payload['productSales'])
    replace_all(ProductSale, items)
    failure = _commit('replacing product sales')
    return failure or jsonify({'productSales': [p.to_dict() for p in items]})


# --- Locations & Expenses ---

@bp.route('/api/locations', methods=['POST'])
def add_location():
    form = LocationForm(formdata=_json_formdata(name='name', monthly_rent='monthlyRent'))
    if not form.validate():
        return _errors(form.error_messages())

    location = Location(id=str(uuid.uuid4()), name=form.name.data.strip(),
                        monthly_rent=form.monthly_rent.data, position=Location.query.count())
    db.session.add(location)
    failure = _commit('adding a location')
    return failure or (jsonify(location.to_entity().to_dict()), 201)


@bp.route('/api/locations/<location_id>', methods=['DELETE'])
def delete_location(location_id):
    location = Location.query.filter_by(id=location_id).first_or_404()
    db.session.delete(location)
    failure = _commit('deleting a location')
    return failure or ('', 204)


@bp.route('/api/expenses', methods=['POST'])
def add_expense():
    form = ExpenseForm(formdata=_json_formdata(name='name', amount='amount'))
    if not form.validate():
        return _errors(form.error_messages())

    expense = Expense(id=str(uuid.uuid4()), name=form.name.data.strip(),
                      amount=form.amount.data, position=Expense.query.count())
    db.session.add(expense)
    failure = _commit('adding an expense')
    return failure or (jsonify(expense.to_entity().to_dict()), 201)


@bp.route('/api/expenses/<expense_id>', methods=['DELETE'])
def delete_expense(expense_id):
    expense = Expense.query.filter_by(id=expense_id).first_or_404()
    db.session.delete(expense)
    failure = _commit('deleting an expense')
    return failure or ('', 204)


# --- Calculations ---

@bp.route('/api/summary')
def summary():
    result = _summary(load_entities())
    body = result.to_dict()
    body['dashboard'] = prepare_dashboard_data(result)
    return jsonify(body)


@bp.route('/api/what-if')
def what_if():
    """Compares the actual month with one where all sales are scaled by `multiplier` percent."""
    form = WhatIfForm(formdata=request.args)
    if not form.validate():
        return _errors(form.error_messages())

    multiplier = form.multiplier.data if form.multiplier.data is not None else 100
    max_multiplier = load_app_settings().get('WHAT_IF_MAX_MULTIPLIER', 300)
    if multiplier > max_multiplier:
        return _errors([f"multiplier: Must be between 0 and {max_multiplier}."])

    data = load_entities()
    base, scenario, profit_delta = compute_what_if(
        data['suppliers'], data['employees'], data['sales'], data['product_sales'],
        data['locations'], data['expenses'], multiplier
    )
    return jsonify({'multiplier': multiplier, 'base': base.to_dict(),
                    'scenario': scenario.to_dict(), 'profitDelta': profit_delta})


@bp.route('/api/employees/<employee_id>/preview')
def commission_preview(employee_id):
    """What an employee would earn from a single sales amount."""
    employee = Employee.query.filter_by(id=employee_id).first_or_404()
    form = CommissionPreviewForm(formdata=request.args)
    if not form.validate():
        return _errors(form.error_messages())

    amount = form.sales.data
    if amount is None:
        amount = load_app_settings().get('PREVIEW_SALES_AMOUNT', 1000)
    result = preview_commission(employee.to_entity(), amount)
    body = result.to_dict()
    body['breakdownLines'] = describe_breakdown(result, get_currency_symbol())
    return jsonify(body)


# --- Exports ---

@bp.route('/api/export/<name>.json')
def export_json(name):
    data = load_entities()
    if name == 'suppliers':
        body = export_entities_json(suppliers=data['suppliers'])
    elif name == 'employees':
        body = export_entities_json(employees=data['employees'])
    elif name == 'config':
        body = export_entities_json(suppliers=data['suppliers'], employees=data['employees'])
    elif name == 'summary':
        body = export_summary_json(_summary(data))
    else:
        return _errors([f"Unknown export '{name}'."], 404)
    return _download(body, f'paycalc-{name}.json', 'application/json')


@bp.route('/api/export/results.csv')
def export_csv():
    data = load_entities()
    body = export_results_csv(_summary(data), data['locations'], data['expenses'], get_currency_symbol())
    return _download(body, 'paycalc-results.csv', 'text/csv; charset=utf-8')


# --- Settings & Reset ---

@bp.route('/api/settings/<key>', methods=['GET', 'PUT'])
def setting(key):
    app_setting = AppSetting.query.filter_by(key=key).first_or_404()
    if request.method == 'GET':
        return jsonify({'key': app_setting.key, 'value': app_setting.get_value(),
                        'description': app_setting.description})

    form = AppSettingForm(formdata=_json_formdata(value='value'))
    if not form.validate():
        return _errors(form.error_messages())

    previous = app_setting.value
    app_setting.value = str(form.value.data).strip()
    try:
        value = app_setting.get_value()
    except ValueError:
        app_setting.value = previous
        return _errors([f"value: Not a valid {app_setting.value_type} value."])

    # Numeric settings feed calculations directly: amounts must be finite, limits non-negative.
    if app_setting.value_type == 'float' and not math.isfinite(value):
        app_setting.value = previous
        return _errors(["value: Must be a finite number."])
    if app_setting.value_type == 'int' and value < 0:
        app_setting.value = previous
        return _errors(["value: Must be a non-negative whole number."])

    failure = _commit(f'updating setting {key}')
    return failure or jsonify({'key': app_setting.key, 'value': value})


@bp.route('/api/reset', methods=['POST'])
def reset():
    """Restores the sample data and default settings."""
    from app.seed import seed_data
    try:
        seed_data(reset=True)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Reset failed: {e}", exc_info=True)
        return _errors(["Could not reset data."], 500)
    current_app.logger.info("All data reset to defaults.")
    return jsonify({key: len(items) for key, items in load_entities().items()})


@bp.app_errorhandler(404)
def not_found(error):
    return _errors([f"Not found: {request.path}"], 404)
