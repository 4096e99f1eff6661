import django_filters as filters

from bookings.models import Booking
from bookings.money import first_of_month


class BookingFilter(filters.FilterSet):
    status = filters.CharFilter(method="filter_status")
    accounting_month = filters.DateFilter(method="filter_accounting_month")
    travel_from = filters.DateFilter(field_name="travel_date", lookup_expr="gte")
    travel_to = filters.DateFilter(field_name="travel_date", lookup_expr="lte")
    folder_no = filters.CharFilter(field_name="folder_no", lookup_expr="startswith")

    class Meta:
        model = Booking
        fields = [
            "status",
            "payment_method",
            "agent",
            "accounting_month",
            "travel_from",
            "travel_to",
            "folder_no",
        ]

    def filter_status(self, queryset, name, value):
        return queryset.filter(booking_status=value.upper())

    def filter_accounting_month(self, queryset, name, value):
        # Any day of the month selects that month
        return queryset.filter(accounting_month=first_of_month(value))
