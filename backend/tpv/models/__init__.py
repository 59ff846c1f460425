from .inventory import IngredientRecord, ProductRecord, PurchaseOrderRecord, SupplierRecord
from .sales import SaleRecord, WasteEntryRecord
from .shifts import ShiftRecord
from .ledger import TaxEntryRecord

__all__ = [
    'IngredientRecord', 'ProductRecord', 'PurchaseOrderRecord', 'SupplierRecord',
    'SaleRecord', 'WasteEntryRecord',
    'ShiftRecord',
    'TaxEntryRecord',
]
