import django_filters

from .models import MovementKind, StockMovement


class StockMovementFilter(django_filters.FilterSet):
    product = django_filters.NumberFilter(field_name="product_id")
    movement_kind = django_filters.ChoiceFilter(choices=MovementKind.choices)
    start_date = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    reference_type = django_filters.CharFilter()
    reference_id = django_filters.CharFilter()

    class Meta:
        model = StockMovement
        fields = ["product", "movement_kind", "start_date", "end_date", "reference_type", "reference_id", "user"]
