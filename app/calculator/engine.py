# ==============================================================================
# app/calculator/engine.py
# ------------------------------------------------------------------------------
# Supplier cost, commission and monthly summary calculations.
# Every function here is pure: it reads the entities it is given and returns
# new result objects. Nothing raises on odd numbers; input checking belongs to
# the validator.
# ==============================================================================

import logging
import math
from collections import OrderedDict
from dataclasses import replace

from .entities import (CommissionResult, FlatScheme, HourlyScheme, MonthlySummary,
                       ProductPaymentLine, ProductSale, SalesEntry, SupplierPaymentResult,
                       TierBreakdown, TieredMode)


# --- Supplier Payments ---

def product_quantities_from_sales(product_sales):
    """Collapses a list of ProductSale rows into {product_id: quantity}, summing repeats."""
    quantities = {}
    for sale in product_sales or []:
        quantities[sale.product_id] = quantities.get(sale.product_id, 0) + sale.quantity_sold
    return quantities


def compute_supplier_payment(supplier, product_quantities):
    """
    Computes what is owed to one supplier for the month.

    Args:
        supplier (Supplier): The supplier and its ordered product list.
        product_quantities (dict): Quantity sold per product id. Missing ids count as 0.

    Returns:
        SupplierPaymentResult: One line per product, in the supplier's order.
    """
    lines = []
    for product in supplier.products:
        qty = product_quantities.get(product.id, 0)
        lines.append(ProductPaymentLine(
            product_id=product.id,
            product_name=product.name,
            quantity_sold=qty,
            cost_per_unit=product.cost_per_unit,
            line_total=qty * product.cost_per_unit,
        ))

    return SupplierPaymentResult(
        supplier_id=supplier.id,
        supplier_name=supplier.name,
        lines=tuple(lines),
        total=sum(line.line_total for line in lines),
    )


# --- Commission Helpers ---

def compute_flat_commission(total_sales, flat_rate):
    amount = total_sales * flat_rate
    return amount, [TierBreakdown(0, total_sales, flat_rate, amount)]


def compute_tiered_flat_commission(total_sales, tiers):
    """The rate of the highest tier reached applies to the entire amount."""
    if not tiers:
        return 0, []

    ordered = sorted(tiers, key=lambda t: t.threshold)

    # The lowest tier is a floor: it applies even below its own threshold.
    applicable_rate = ordered[0].rate
    for tier in ordered:
        if total_sales >= tier.threshold:
            applicable_rate = tier.rate

    amount = total_sales * applicable_rate
    return amount, [TierBreakdown(0, total_sales, applicable_rate, amount)]


def compute_tiered_marginal_commission(total_sales, tiers):
    """Each slice of sales is paid at the rate of the bracket it falls in."""
    if not tiers:
        return 0, []

    ordered = sorted(tiers, key=lambda t: t.threshold)
    breakdown = []
    total_commission = 0

    for i, tier in enumerate(ordered):
        range_start = tier.threshold
        if i + 1 < len(ordered):
            range_end = min(total_sales, ordered[i + 1].threshold)
        else:
            range_end = total_sales

        if total_sales <= range_start:
            break

        amount = (range_end - range_start) * tier.rate
        breakdown.append(TierBreakdown(range_start, range_end, tier.rate, amount))
        total_commission += amount

    return total_commission, breakdown


def compute_hourly_commission(hours_worked, hourly_rate):
    amount = hours_worked * hourly_rate
    if hours_worked > 0:
        return amount, [TierBreakdown(0, hours_worked, hourly_rate, amount)]
    return amount, []


def compute_day_commission(employee, day_sales):
    """Commission for a single day's sales, bracketed from zero."""
    scheme = employee.scheme
    if isinstance(scheme, FlatScheme):
        return compute_flat_commission(day_sales, scheme.rate)
    if scheme.mode is TieredMode.FLAT:
        return compute_tiered_flat_commission(day_sales, scheme.tiers)
    return compute_tiered_marginal_commission(day_sales, scheme.tiers)


def _merge_breakdown(merged, segments):
    # Segments sharing a rate collapse into one: the first keeps its start,
    # later ones only widen it.
    for segment in segments:
        existing = merged.get(segment.rate)
        if existing is None:
            merged[segment.rate] = segment
        else:
            merged[segment.rate] = replace(
                existing,
                range_end=existing.range_end + segment.width,
                amount=existing.amount + segment.amount,
            )


# --- Main Commission Calculation ---

def compute_commission(employee, sales=None):
    """
    Computes one employee's commission for the month.

    Flat and tiered schemes are evaluated per day: each day's sales are
    bracketed from zero, the day results summed and their breakdowns merged by
    rate. Hourly pay is the month's hours times the hourly rate.

    Args:
        employee (Employee): The employee and commission scheme.
        sales (SalesEntry): The employee's month, or None when nothing was entered.

    Returns:
        CommissionResult
    """
    if sales is None:
        sales = SalesEntry(employee_id=employee.id)

    total_sales = sales.total_sales
    hours_worked = sales.hours_worked

    if isinstance(employee.scheme, HourlyScheme):
        total_commission, breakdown = compute_hourly_commission(hours_worked, employee.scheme.hourly_rate)
    else:
        total_commission = 0
        merged = OrderedDict()
        for day_sales in sales.daily_sales:
            if day_sales <= 0:
                continue
            day_amount, day_breakdown = compute_day_commission(employee, day_sales)
            total_commission += day_amount
            _merge_breakdown(merged, day_breakdown)
        breakdown = list(merged.values())

    logging.debug(
        f"Commission for '{employee.name}' ({employee.commission_type.value}): "
        f"sales={total_sales:,.2f}, hours={hours_worked:,.2f} -> {total_commission:,.2f}"
    )

    return CommissionResult(
        employee_id=employee.id,
        employee_name=employee.name,
        total_sales=total_sales,
        commission_amount=total_commission,
        commission_type=employee.commission_type,
        tiered_mode=employee.tiered_mode,
        breakdown=tuple(breakdown),
        hours_worked=hours_worked,
    )


def preview_commission(employee, sales_amount):
    """What the employee would earn from one day's sales of `sales_amount`."""
    return compute_commission(employee, SalesEntry(employee_id=employee.id, daily_sales=(sales_amount,)))


# --- Monthly Summary ---

def _find_sales_entry(sales_entries, employee_id):
    for entry in sales_entries:
        if entry.employee_id == employee_id:
            return entry
    return None


def compute_monthly_summary(suppliers, employees, sales_entries, product_sales=None, locations=None, expenses=None):
    """
    Rolls supplier payments, commissions and fixed costs into one summary.

    Every employee appears in the employee breakdown, with zero values when no
    sales entry exists for them. The margin is 0 when there is no revenue.

    Returns:
        MonthlySummary
    """
    quantities = product_quantities_from_sales(product_sales)
    supplier_breakdown = tuple(compute_supplier_payment(s, quantities) for s in suppliers)
    employee_breakdown = tuple(
        compute_commission(e, _find_sales_entry(sales_entries, e.id)) for e in employees
    )

    total_revenue = sum(e.total_sales for e in employee_breakdown)
    total_supplier_cost = sum(s.total for s in supplier_breakdown)
    total_commissions = sum(e.commission_amount for e in employee_breakdown)
    total_location_costs = sum(l.monthly_rent for l in locations or [])
    total_expenses = sum(e.amount for e in expenses or [])

    gross_profit = (total_revenue - total_supplier_cost - total_commissions
                    - total_location_costs - total_expenses)
    profit_margin_percent = (gross_profit / total_revenue) * 100 if total_revenue > 0 else 0

    for s in supplier_breakdown:
        logging.debug(f"Supplier '{s.supplier_name}': {len(s.lines)} lines, total={s.total:,.2f}")
    logging.info(
        f"Monthly summary: revenue={total_revenue:,.2f}, suppliers={total_supplier_cost:,.2f}, "
        f"commissions={total_commissions:,.2f}, locations={total_location_costs:,.2f}, "
        f"expenses={total_expenses:,.2f}, profit={gross_profit:,.2f} ({profit_margin_percent:.1f}%)"
    )

    return MonthlySummary(
        total_revenue=total_revenue,
        total_supplier_cost=total_supplier_cost,
        total_commissions=total_commissions,
        total_location_costs=total_location_costs,
        total_expenses=total_expenses,
        gross_profit=gross_profit,
        profit_margin_percent=profit_margin_percent,
        supplier_breakdown=supplier_breakdown,
        employee_breakdown=employee_breakdown,
    )


# --- What-If Simulation ---

def _round_half_up(value):
    return math.floor(value + 0.5)


def scale_sales(sales_entries, product_sales, multiplier_percent):
    """
    Returns copies of the sales inputs with every sales amount scaled by
    multiplier_percent / 100. Product quantities are rounded to whole units.
    Hours worked are left unchanged.
    """
    factor = multiplier_percent / 100
    scaled_entries = [
        replace(entry, daily_sales=tuple(day * factor for day in entry.daily_sales))
        for entry in sales_entries
    ]
    scaled_products = [
        ProductSale(product_id=ps.product_id, quantity_sold=_round_half_up(ps.quantity_sold * factor))
        for ps in product_sales or []
    ]
    return scaled_entries, scaled_products


def compute_what_if(suppliers, employees, sales_entries, product_sales=None, locations=None,
                    expenses=None, multiplier_percent=100):
    """
    Computes the actual summary and a scenario with all sales scaled.

    Returns:
        tuple: (base MonthlySummary, scenario MonthlySummary, gross profit delta)
    """
    base = compute_monthly_summary(suppliers, employees, sales_entries, product_sales, locations, expenses)
    scaled_entries, scaled_products = scale_sales(sales_entries, product_sales, multiplier_percent)
    scenario = compute_monthly_summary(suppliers, employees, scaled_entries, scaled_products, locations, expenses)
    logging.info(f"What-if at {multiplier_percent}%: profit delta {scenario.gross_profit - base.gross_profit:,.2f}")
    return base, scenario, scenario.gross_profit - base.gross_profit
