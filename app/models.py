# ==============================================================================
# app/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# Rows are converted to calculator entities before any computation runs, so the
# engine never sees a database object.
# ==============================================================================

import json
from app import db
from app.calculator import entities


class Supplier(db.Model):
    """A supplier and, through `products`, the unit costs it charges."""
    __tablename__ = 'supplier'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    position = db.Column(db.Integer, default=0, nullable=False)

    # Deleting a supplier deletes its products.
    products = db.relationship('Product', backref='supplier', order_by='Product.position',
                               cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Supplier {self.id}: {self.name}>'

    @classmethod
    def from_entity(cls, supplier, position=0):
        row = cls(id=supplier.id, name=supplier.name, position=position)
        row.products = [Product.from_entity(p, j) for j, p in enumerate(supplier.products)]
        return row

    def to_entity(self):
        return entities.Supplier(
            id=self.id, name=self.name,
            products=tuple(p.to_entity() for p in self.products)
        )


class Product(db.Model):
    __tablename__ = 'product'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    cost_per_unit = db.Column(db.Float, default=0, nullable=False)
    position = db.Column(db.Integer, default=0, nullable=False)
    supplier_id = db.Column(db.String(64), db.ForeignKey('supplier.id'), nullable=False)

    def __repr__(self):
        return f'<Product {self.id}: {self.name}>'

    @classmethod
    def from_entity(cls, product, position=0):
        return cls(id=product.id, name=product.name, cost_per_unit=product.cost_per_unit, position=position)

    def to_entity(self):
        return entities.Product(id=self.id, name=self.name, cost_per_unit=self.cost_per_unit)


class Employee(db.Model):
    """
    Stores an employee with the columns of every commission scheme. Only the
    columns of `commission_type` are filled; to_entity() turns the row into
    the matching scheme object.
    """
    __tablename__ = 'employee'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    commission_type = db.Column(db.String(16), nullable=False)
    flat_rate = db.Column(db.Float, nullable=True)
    tiered_mode = db.Column(db.String(16), nullable=True)
    hourly_rate = db.Column(db.Float, nullable=True)
    position = db.Column(db.Integer, default=0, nullable=False)

    tiers = db.relationship('CommissionTier', backref='employee', order_by='CommissionTier.position',
                            cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Employee {self.id}: {self.name} ({self.commission_type})>'

    @classmethod
    def from_entity(cls, employee, position=0):
        row = cls(id=employee.id, name=employee.name,
                  commission_type=employee.commission_type.value, position=position)
        scheme = employee.scheme
        if isinstance(scheme, entities.FlatScheme):
            row.flat_rate = scheme.rate
        elif isinstance(scheme, entities.HourlyScheme):
            row.hourly_rate = scheme.hourly_rate
        else:
            row.tiered_mode = scheme.mode.value
            row.tiers = [CommissionTier(threshold=t.threshold, rate=t.rate, position=j)
                         for j, t in enumerate(scheme.tiers)]
        return row

    def to_entity(self):
        return entities.Employee.from_dict({
            'id': self.id,
            'name': self.name,
            'commissionType': self.commission_type,
            'flatRate': self.flat_rate,
            'tieredMode': self.tiered_mode,
            'hourlyRate': self.hourly_rate,
            'tiers': [{'threshold': t.threshold, 'rate': t.rate} for t in self.tiers],
        })


class CommissionTier(db.Model):
    __tablename__ = 'commission_tier'
    id = db.Column(db.Integer, primary_key=True)
    threshold = db.Column(db.Float, nullable=False)
    rate = db.Column(db.Float, nullable=False)
    position = db.Column(db.Integer, default=0, nullable=False)
    employee_id = db.Column(db.String(64), db.ForeignKey('employee.id'), nullable=False)

    def __repr__(self):
        return f'<CommissionTier {self.threshold}: {self.rate:.2%}>'


class SalesEntry(db.Model):
    """
    One month of sales for one employee. The daily series are stored as JSON
    text, the same way the calculation results were stored as JSON blobs.
    """
    __tablename__ = 'sales_entry'
    employee_id = db.Column(db.String(64), primary_key=True)
    daily_sales_json = db.Column(db.Text, nullable=False, default='[]')
    daily_hours_json = db.Column(db.Text, nullable=False, default='[]')
    position = db.Column(db.Integer, default=0, nullable=False)

    def __repr__(self):
        return f'<SalesEntry {self.employee_id}>'

    @classmethod
    def from_entity(cls, entry, position=0):
        return cls(employee_id=entry.employee_id,
                   daily_sales_json=json.dumps(list(entry.daily_sales)),
                   daily_hours_json=json.dumps(list(entry.daily_hours)),
                   position=position)

    def to_entity(self):
        return entities.SalesEntry(
            employee_id=self.employee_id,
            daily_sales=tuple(json.loads(self.daily_sales_json or '[]')),
            daily_hours=tuple(json.loads(self.daily_hours_json or '[]')),
        )


class ProductSale(db.Model):
    """Business-wide quantity sold of one product this month."""
    __tablename__ = 'product_sale'
    product_id = db.Column(db.String(64), primary_key=True)
    quantity_sold = db.Column(db.Float, default=0, nullable=False)

    def __repr__(self):
        return f'<ProductSale {self.product_id}: {self.quantity_sold}>'

    @classmethod
    def from_entity(cls, product_sale, position=0):
        return cls(product_id=product_sale.product_id, quantity_sold=product_sale.quantity_sold)

    def to_entity(self):
        return entities.ProductSale(product_id=self.product_id, quantity_sold=self.quantity_sold)


class Location(db.Model):
    __tablename__ = 'location'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    monthly_rent = db.Column(db.Float, default=0, nullable=False)
    position = db.Column(db.Integer, default=0, nullable=False)

    def __repr__(self):
        return f'<Location {self.id}: {self.name}>'

    @classmethod
    def from_entity(cls, location, position=0):
        return cls(id=location.id, name=location.name, monthly_rent=location.monthly_rent, position=position)

    def to_entity(self):
        return entities.Location(id=self.id, name=self.name, monthly_rent=self.monthly_rent)


class Expense(db.Model):
    __tablename__ = 'expense'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    amount = db.Column(db.Float, default=0, nullable=False)
    position = db.Column(db.Integer, default=0, nullable=False)

    def __repr__(self):
        return f'<Expense {self.id}: {self.name}>'

    @classmethod
    def from_entity(cls, expense, position=0):
        return cls(id=expense.id, name=expense.name, amount=expense.amount, position=position)

    def to_entity(self):
        return entities.Expense(id=self.id, name=self.name, amount=self.amount)


class AppSetting(db.Model):
    """
    Stores key-value pairs for application settings (e.g. the currency
    symbol used in exports), editable through the API.
    """
    __tablename__ = 'app_setting'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)
    value = db.Column(db.String(256), nullable=False)
    description = db.Column(db.String(512))
    value_type = db.Column(db.String(32), default='string') # e.g., 'float', 'int', 'string', 'json'

    def __repr__(self):
        return f'<AppSetting {self.key}: {self.value}>'

    def get_value(self):
        """Casts the string value to its correct Python type."""
        if self.value_type == 'float':
            return float(self.value)
        if self.value_type == 'int':
            return int(self.value)
        if self.value_type == 'json':
            return json.loads(self.value)
        return self.value


# --- Loading and bulk replacement ---

def load_entities():
    """
    Reads every stored collection as calculator entities, in stored order.

    Returns:
        dict: suppliers, employees, sales, product_sales, locations, expenses
    """
    return {
        'suppliers': [r.to_entity() for r in Supplier.query.order_by(Supplier.position).all()],
        'employees': [r.to_entity() for r in Employee.query.order_by(Employee.position).all()],
        'sales': [r.to_entity() for r in SalesEntry.query.order_by(SalesEntry.position).all()],
        'product_sales': [r.to_entity() for r in ProductSale.query.all()],
        'locations': [r.to_entity() for r in Location.query.order_by(Location.position).all()],
        'expenses': [r.to_entity() for r in Expense.query.order_by(Expense.position).all()],
    }


def replace_all(model, items):
    """
    Replaces a whole collection with `items` (calculator entities). The caller
    commits. Rows are deleted one by one so relationship cascades apply.
    """
    for row in model.query.all():
        db.session.delete(row)
    db.session.flush()
    for position, item in enumerate(items):
        db.session.add(model.from_entity(item, position))
