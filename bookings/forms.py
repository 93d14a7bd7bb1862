from django import forms
from django.conf import settings


class IdListField(forms.Field):
    default_error_messages = {
        'invalid': 'Enter a list of integer ids.',
        'duplicate': 'The same id appears more than once.',
    }

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
        ids = []
        for item in value:
            if isinstance(item, bool) or not isinstance(item, int):
                raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
            ids.append(item)
        return ids

    def validate(self, value):
        super().validate(value)
        if len(set(value)) != len(value):
            raise forms.ValidationError(self.error_messages['duplicate'], code='duplicate')


class RefreshmentOrderField(forms.Field):
    """A list of ``{"refreshment_id": int, "quantity": int >= 1}`` objects."""

    default_error_messages = {
        'invalid': 'Enter a list of {"refreshment_id", "quantity"} objects.',
        'quantity': 'Quantity must be at least 1.',
        'duplicate': 'Each refreshment may appear only once.',
    }

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')

        orders = []
        for item in value:
            if not isinstance(item, dict):
                raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
            refreshment_id = item.get('refreshment_id')
            quantity = item.get('quantity')
            if not isinstance(refreshment_id, int) or not isinstance(quantity, int):
                raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
            if quantity < 1:
                raise forms.ValidationError(self.error_messages['quantity'], code='quantity')
            orders.append((refreshment_id, quantity))
        return orders

    def validate(self, value):
        super().validate(value)
        ids = [refreshment_id for refreshment_id, _ in value]
        if len(set(ids)) != len(ids):
            raise forms.ValidationError(self.error_messages['duplicate'], code='duplicate')


class BookingForm(forms.Form):

    showtime_id = forms.IntegerField(error_messages={'required': 'Showtime ID is required.'})
    seat_ids = IdListField(error_messages={'required': 'Select at least one seat.'})
    refreshments = RefreshmentOrderField(required=False)

    def clean_seat_ids(self):
        seat_ids = self.cleaned_data['seat_ids']
        if len(seat_ids) > settings.MAX_SEATS_PER_BOOKING:
            raise forms.ValidationError(
                f"Maximum {settings.MAX_SEATS_PER_BOOKING} seats allowed per booking."
            )
        return seat_ids
