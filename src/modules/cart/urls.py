"""Cart URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.cart.views import CartItemDetailView, CartItemListView, CartView

urlpatterns = [
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/items/", CartItemListView.as_view(), name="cart-items"),
    path(
        "cart/items/<str:pk>/",
        CartItemDetailView.as_view(),
        name="cart-item-detail",
    ),
]
