from django.urls import path

from modules.payments.views import PaymentNotificationView, PaymentPreferenceView

urlpatterns = [
    path(
        "payment-notifications",
        PaymentNotificationView.as_view(),
        name="payment-notifications",
    ),
    path(
        "orders/<str:pk>/payment/",
        PaymentPreferenceView.as_view(),
        name="order-payment",
    ),
]
