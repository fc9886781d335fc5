from .tenancy import Organization
from .auth import User, Membership, SessionToken
from .catalog import Supplier, Product, Sku, Warehouse, InventoryLevel
from .purchasing import PurchaseOrder, PurchaseOrderItem, InboundShipment
from .security import SecurityEvent, AuditLog

__all__ = [
    'Organization',
    'User', 'Membership', 'SessionToken',
    'Supplier', 'Product', 'Sku', 'Warehouse', 'InventoryLevel',
    'PurchaseOrder', 'PurchaseOrderItem', 'InboundShipment',
    'SecurityEvent', 'AuditLog',
]
