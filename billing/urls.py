from django.urls import path

from .views.checkout import (
    CreateOrderView, CreateTopupView, GatewayWebhookView, OrderStatusView, VerifyPaymentView,
)

urlpatterns = [
    path("orders", CreateOrderView.as_view(), name="billing-create-order"),
    path("orders/<int:pk>/status", OrderStatusView.as_view(), name="billing-order-status"),
    path("topups", CreateTopupView.as_view(), name="billing-create-topup"),
    path("verify-payment", VerifyPaymentView.as_view(), name="billing-verify-payment"),
    path("webhook", GatewayWebhookView.as_view(), name="billing-webhook"),
]
