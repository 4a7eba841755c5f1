from .tenancy import Tenant, TenantSettings
from .customers import Customer
from .appointments import Appointment, PackageReference, APPOINTMENT_STATUSES
from .packages import CustomerPackage, CustomerPackageUsage, PACKAGE_STATUS_ACTIVE, PACKAGE_STATUS_COMPLETED
from .ledger import Transaction, TRANSACTION_TYPE_APPOINTMENT, TRANSACTION_TYPES
from .notifications import Notification

__all__ = [
    'Tenant', 'TenantSettings',
    'Customer',
    'Appointment', 'PackageReference', 'APPOINTMENT_STATUSES',
    'CustomerPackage', 'CustomerPackageUsage', 'PACKAGE_STATUS_ACTIVE', 'PACKAGE_STATUS_COMPLETED',
    'Transaction', 'TRANSACTION_TYPE_APPOINTMENT', 'TRANSACTION_TYPES',
    'Notification',
]
