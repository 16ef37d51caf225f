from rest_framework.routers import DefaultRouter

router = DefaultRouter()

# Admin Customers & Plans
from customers.views.customer import CustomerAdminViewSet, PlanAdminViewSet
router.register(r"admin/customers", CustomerAdminViewSet, basename="admin-customers")
router.register(r"admin/plans", PlanAdminViewSet, basename="admin-plans")

# Admin Billing (lecture seule)
from billing.views.admin import OrderAdminViewSet, BillingCycleAdminViewSet
router.register(r"admin/orders", OrderAdminViewSet, basename="admin-orders")
router.register(r"admin/cycles", BillingCycleAdminViewSet, basename="admin-cycles")

# Admin Audit
from audit.views import AuditLogAdminViewSet
router.register(r"admin/audit", AuditLogAdminViewSet, basename="admin-audit")
