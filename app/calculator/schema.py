# ==============================================================================
# app/calculator/schema.py
# ------------------------------------------------------------------------------
# Defines the expected structure of imported JSON documents.
# This schema is the single source of truth for the validator.
# ==============================================================================

# Top-level key holding the array for each importable collection, with the
# label used in error messages.
IMPORT_COLLECTIONS = {
    'suppliers': 'Supplier',
    'employees': 'Employee',
    'sales': 'Sales',
    'productSales': 'ProductSale',
}

COMMISSION_TYPES = ('flat', 'tiered', 'hourly')
TIERED_MODES = ('flat', 'marginal')

# Per-record field rules:
#   required_strings      -> non-empty strings
#   non_negative_numbers  -> numbers >= 0
#   rates                 -> numbers in [0, 1]
#   arrays                -> lists (contents checked separately)
EXPECTED_FIELDS = {
    'supplier': {
        'required_strings': ['id', 'name'],
        'arrays': ['products'],
    },
    'product': {
        'required_strings': ['id', 'name'],
        'non_negative_numbers': ['costPerUnit'],
    },
    'employee': {
        'required_strings': ['id', 'name'],
    },
    'flat': {
        'rates': ['flatRate'],
    },
    'hourly': {
        'non_negative_numbers': ['hourlyRate'],
    },
    'tier': {
        'non_negative_numbers': ['threshold'],
        'rates': ['rate'],
    },
    'sales_entry': {
        'required_strings': ['employeeId'],
    },
    'product_sale': {
        'required_strings': ['productId'],
        'non_negative_numbers': ['quantitySold'],
    },
}
