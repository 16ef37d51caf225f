from rest_framework.permissions import BasePermission

from customers.models import Customer


def resolve_customer(request):
    """
    Résout le Customer de l'utilisateur authentifié et le pose sur request.customer.
    Retourne None si l'utilisateur n'a pas de profil client.
    """
    cached = getattr(request, "customer", None)
    if cached is not None:
        return cached
    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        return None
    customer = Customer.objects.filter(user_id=user.pk).first()
    request.customer = customer
    return customer


class CustomerScopedPermission(BasePermission):
    """
    Autorise l'accès si l'utilisateur authentifié possède un profil client actif.
    """
    message = "Customer profile required"

    def has_permission(self, request, view):
        customer = resolve_customer(request)
        return bool(customer and customer.is_active)
