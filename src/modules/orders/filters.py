import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    payment_status = django_filters.CharFilter(
        field_name="payment_status", lookup_expr="iexact"
    )
    fulfillment_status = django_filters.CharFilter(
        field_name="fulfillment_status", lookup_expr="iexact"
    )
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    min_subtotal = django_filters.NumberFilter(field_name="subtotal", lookup_expr="gte")
    max_subtotal = django_filters.NumberFilter(field_name="subtotal", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "payment_status",
            "fulfillment_status",
            "start_date",
            "end_date",
            "min_subtotal",
            "max_subtotal",
        ]
