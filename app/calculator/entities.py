# ==============================================================================
# app/calculator/entities.py
# ------------------------------------------------------------------------------
# Immutable value objects passed into and returned from the calculation engine.
# Dict conversion uses the camelCase keys of the JSON import/export format.
# ==============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class CommissionType(str, Enum):
    FLAT = 'flat'
    TIERED = 'tiered'
    HOURLY = 'hourly'


class TieredMode(str, Enum):
    FLAT = 'flat'
    MARGINAL = 'marginal'


def _number(value, default=0.0):
    if value is None:
        return default
    return float(value)


# --- Source Entities ---

@dataclass(frozen=True)
class Product:
    id: str
    name: str
    cost_per_unit: float = 0.0

    @classmethod
    def from_dict(cls, data):
        return cls(id=data['id'], name=data['name'], cost_per_unit=_number(data.get('costPerUnit')))

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'costPerUnit': self.cost_per_unit}


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    products: Tuple[Product, ...] = ()

    @classmethod
    def from_dict(cls, data):
        products = tuple(Product.from_dict(p) for p in data.get('products') or [])
        return cls(id=data['id'], name=data['name'], products=products)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'products': [p.to_dict() for p in self.products]}


@dataclass(frozen=True)
class CommissionTier:
    threshold: float
    rate: float

    @classmethod
    def from_dict(cls, data):
        return cls(threshold=_number(data.get('threshold')), rate=_number(data.get('rate')))

    def to_dict(self):
        return {'threshold': self.threshold, 'rate': self.rate}


@dataclass(frozen=True)
class FlatScheme:
    """A single percentage of every sale."""
    rate: float

    commission_type = CommissionType.FLAT


@dataclass(frozen=True)
class TieredScheme:
    """Threshold/rate brackets, applied flat or marginally."""
    mode: TieredMode
    tiers: Tuple[CommissionTier, ...] = ()

    commission_type = CommissionType.TIERED


@dataclass(frozen=True)
class HourlyScheme:
    """Pay per hour worked; sales volume does not affect the amount."""
    hourly_rate: float

    commission_type = CommissionType.HOURLY


CommissionScheme = Union[FlatScheme, TieredScheme, HourlyScheme]


@dataclass(frozen=True)
class Employee:
    """
    An employee and exactly one commission scheme. The scheme object carries
    only the fields of its own type, so a flat employee can never hold tiers.
    """
    id: str
    name: str
    scheme: CommissionScheme

    @property
    def commission_type(self):
        return self.scheme.commission_type

    @property
    def tiered_mode(self):
        return self.scheme.mode if isinstance(self.scheme, TieredScheme) else None

    @classmethod
    def from_dict(cls, data):
        commission_type = CommissionType(data['commissionType'])
        if commission_type is CommissionType.FLAT:
            scheme = FlatScheme(rate=_number(data.get('flatRate')))
        elif commission_type is CommissionType.HOURLY:
            scheme = HourlyScheme(hourly_rate=_number(data.get('hourlyRate')))
        else:
            tiers = tuple(CommissionTier.from_dict(t) for t in data.get('tiers') or [])
            scheme = TieredScheme(mode=TieredMode(data.get('tieredMode') or TieredMode.FLAT.value), tiers=tiers)
        return cls(id=data['id'], name=data['name'], scheme=scheme)

    def to_dict(self):
        data = {'id': self.id, 'name': self.name, 'commissionType': self.commission_type.value}
        if isinstance(self.scheme, FlatScheme):
            data['flatRate'] = self.scheme.rate
        elif isinstance(self.scheme, HourlyScheme):
            data['hourlyRate'] = self.scheme.hourly_rate
        else:
            data['tieredMode'] = self.scheme.mode.value
            data['tiers'] = [t.to_dict() for t in self.scheme.tiers]
        return data


@dataclass(frozen=True)
class SalesEntry:
    """One employee's month: a sales amount per day worked, optional hours per day."""
    employee_id: str
    daily_sales: Tuple[float, ...] = ()
    daily_hours: Tuple[float, ...] = ()

    @property
    def total_sales(self):
        return sum(self.daily_sales)

    @property
    def hours_worked(self):
        return sum(self.daily_hours)

    @classmethod
    def from_dict(cls, data):
        if 'dailySales' in data:
            daily_sales = tuple(_number(v) for v in data.get('dailySales') or [])
        else:
            # Older exports carried one monthly total instead of a daily series.
            daily_sales = (_number(data.get('totalSalesDollars')),)
        daily_hours = tuple(_number(v) for v in data.get('dailyHours') or [])
        return cls(employee_id=data['employeeId'], daily_sales=daily_sales, daily_hours=daily_hours)

    def to_dict(self):
        data = {'employeeId': self.employee_id, 'dailySales': list(self.daily_sales)}
        if self.daily_hours:
            data['dailyHours'] = list(self.daily_hours)
        return data


@dataclass(frozen=True)
class ProductSale:
    product_id: str
    quantity_sold: float

    @classmethod
    def from_dict(cls, data):
        return cls(product_id=data['productId'], quantity_sold=_number(data.get('quantitySold')))

    def to_dict(self):
        return {'productId': self.product_id, 'quantitySold': self.quantity_sold}


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    monthly_rent: float = 0.0

    @classmethod
    def from_dict(cls, data):
        return cls(id=data['id'], name=data['name'], monthly_rent=_number(data.get('monthlyRent')))

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'monthlyRent': self.monthly_rent}


@dataclass(frozen=True)
class Expense:
    id: str
    name: str
    amount: float = 0.0

    @classmethod
    def from_dict(cls, data):
        return cls(id=data['id'], name=data['name'], amount=_number(data.get('amount')))

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'amount': self.amount}


# --- Computed Results ---

@dataclass(frozen=True)
class TierBreakdown:
    range_start: float
    range_end: float
    rate: float
    amount: float

    @property
    def width(self):
        return self.range_end - self.range_start

    def to_dict(self):
        return {
            'rangeStart': self.range_start, 'rangeEnd': self.range_end,
            'rate': self.rate, 'amount': self.amount,
        }


@dataclass(frozen=True)
class CommissionResult:
    employee_id: str
    employee_name: str
    total_sales: float
    commission_amount: float
    commission_type: CommissionType
    tiered_mode: Optional[TieredMode] = None
    breakdown: Tuple[TierBreakdown, ...] = ()
    hours_worked: float = 0.0

    def to_dict(self):
        return {
            'employeeId': self.employee_id,
            'employeeName': self.employee_name,
            'totalSales': self.total_sales,
            'commissionAmount': self.commission_amount,
            'commissionType': self.commission_type.value,
            'tieredMode': self.tiered_mode.value if self.tiered_mode else None,
            'hoursWorked': self.hours_worked,
            'breakdown': [b.to_dict() for b in self.breakdown],
        }


@dataclass(frozen=True)
class ProductPaymentLine:
    product_id: str
    product_name: str
    quantity_sold: float
    cost_per_unit: float
    line_total: float

    def to_dict(self):
        return {
            'productId': self.product_id, 'productName': self.product_name,
            'quantitySold': self.quantity_sold, 'costPerUnit': self.cost_per_unit,
            'lineTotal': self.line_total,
        }


@dataclass(frozen=True)
class SupplierPaymentResult:
    supplier_id: str
    supplier_name: str
    lines: Tuple[ProductPaymentLine, ...] = ()
    total: float = 0.0

    def to_dict(self):
        return {
            'supplierId': self.supplier_id,
            'supplierName': self.supplier_name,
            'lines': [line.to_dict() for line in self.lines],
            'total': self.total,
        }


@dataclass(frozen=True)
class MonthlySummary:
    total_revenue: float = 0.0
    total_supplier_cost: float = 0.0
    total_commissions: float = 0.0
    total_location_costs: float = 0.0
    total_expenses: float = 0.0
    gross_profit: float = 0.0
    profit_margin_percent: float = 0.0
    supplier_breakdown: Tuple[SupplierPaymentResult, ...] = field(default_factory=tuple)
    employee_breakdown: Tuple[CommissionResult, ...] = field(default_factory=tuple)

    def to_dict(self):
        return {
            'totalRevenue': self.total_revenue,
            'totalSupplierCost': self.total_supplier_cost,
            'totalCommissions': self.total_commissions,
            'totalLocationCosts': self.total_location_costs,
            'totalExpenses': self.total_expenses,
            'grossProfit': self.gross_profit,
            'profitMarginPercent': self.profit_margin_percent,
            'supplierBreakdown': [s.to_dict() for s in self.supplier_breakdown],
            'employeeBreakdown': [e.to_dict() for e in self.employee_breakdown],
        }
