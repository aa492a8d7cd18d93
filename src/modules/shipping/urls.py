from django.urls import path

from modules.shipping.views import ShippingLabelView

urlpatterns = [
    path(
        "orders/<str:pk>/shipping-label/",
        ShippingLabelView.as_view(),
        name="order-shipping-label",
    ),
]
