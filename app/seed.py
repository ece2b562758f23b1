import logging
from app import db
from app.calculator.entities import Employee, ProductSale, SalesEntry, Supplier
from app.models import (AppSetting, Employee as EmployeeRow, Expense, Location,
                        ProductSale as ProductSaleRow, SalesEntry as SalesEntryRow,
                        Supplier as SupplierRow, replace_all)

DEFAULT_SETTINGS = {
    # key: [value, description, value_type]
    'CURRENCY_SYMBOL': ['$', 'Currency symbol shown in exported amounts', 'string'],
    'WHAT_IF_MAX_MULTIPLIER': ['300', 'Upper bound (percent) accepted by the what-if simulator', 'int'],
    'PREVIEW_SALES_AMOUNT': ['1000', 'Sales amount used by the commission preview when none is given', 'float'],
}

DEFAULT_SUPPLIERS = [
    {'id': 'sup-roastery', 'name': 'Hilltop Roastery', 'products': [
        {'id': 'prod-espresso-beans', 'name': 'Espresso Beans (1kg)', 'costPerUnit': 18.5},
        {'id': 'prod-decaf-beans', 'name': 'Decaf Beans (1kg)', 'costPerUnit': 21.0},
    ]},
    {'id': 'sup-dairy', 'name': 'Valley Dairy', 'products': [
        {'id': 'prod-whole-milk', 'name': 'Whole Milk (4L)', 'costPerUnit': 4.25},
        {'id': 'prod-oat-milk', 'name': 'Oat Milk (1L)', 'costPerUnit': 2.9},
    ]},
]

DEFAULT_EMPLOYEES = [
    {'id': 'emp-ava', 'name': 'Ava Thompson', 'commissionType': 'flat', 'flatRate': 0.05},
    {'id': 'emp-ben', 'name': 'Ben Okafor', 'commissionType': 'tiered', 'tieredMode': 'marginal', 'tiers': [
        {'threshold': 0, 'rate': 0.05},
        {'threshold': 1000, 'rate': 0.10},
        {'threshold': 5000, 'rate': 0.15},
    ]},
    {'id': 'emp-chloe', 'name': 'Chloe Martin', 'commissionType': 'tiered', 'tieredMode': 'flat', 'tiers': [
        {'threshold': 0, 'rate': 0.04},
        {'threshold': 800, 'rate': 0.06},
    ]},
    {'id': 'emp-dev', 'name': 'Dev Patel', 'commissionType': 'hourly', 'hourlyRate': 16.0},
]

DEFAULT_SALES = [
    {'employeeId': 'emp-ava', 'dailySales': [420, 515.5, 380, 610]},
    {'employeeId': 'emp-ben', 'dailySales': [1200, 800, 1450]},
    {'employeeId': 'emp-chloe', 'dailySales': [650, 920]},
    {'employeeId': 'emp-dev', 'dailySales': [300, 275], 'dailyHours': [8, 7.5]},
]

DEFAULT_PRODUCT_SALES = [
    {'productId': 'prod-espresso-beans', 'quantitySold': 42},
    {'productId': 'prod-decaf-beans', 'quantitySold': 9},
    {'productId': 'prod-whole-milk', 'quantitySold': 65},
    {'productId': 'prod-oat-milk', 'quantitySold': 30},
]


def seed_data(reset=False):
    """
    Populates the database with default settings and sample data.

    Settings are only added when missing. The sample suppliers, employees and
    sales are written when the database has no suppliers yet, or always when
    `reset` is set; a reset also clears locations and expenses.
    """
    for key, data in DEFAULT_SETTINGS.items():
        setting = AppSetting.query.filter_by(key=key).first()
        if not setting:
            db.session.add(AppSetting(key=key, value=data[0], description=data[1], value_type=data[2]))
            logging.info(f'Seeding setting: {key}')
        elif reset:
            setting.value = data[0]

    if reset or SupplierRow.query.count() == 0:
        logging.info('Seeding default suppliers, employees and sales...')
        replace_all(SupplierRow, [Supplier.from_dict(s) for s in DEFAULT_SUPPLIERS])
        replace_all(EmployeeRow, [Employee.from_dict(e) for e in DEFAULT_EMPLOYEES])
        replace_all(SalesEntryRow, [SalesEntry.from_dict(s) for s in DEFAULT_SALES])
        replace_all(ProductSaleRow, [ProductSale.from_dict(p) for p in DEFAULT_PRODUCT_SALES])

    if reset:
        replace_all(Location, [])
        replace_all(Expense, [])

    db.session.commit()
    logging.info('Seeding complete.')

