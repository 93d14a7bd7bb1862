from decimal import Decimal
from django import forms


class ShowtimeForm(forms.Form):

    movie_id = forms.IntegerField(error_messages={'required': 'Movie ID is required.'})
    room_id = forms.IntegerField(error_messages={'required': 'Room ID is required.'})
    start_time = forms.DateTimeField(error_messages={'required': 'Start time is required.'})
    # Derived from the movie duration when omitted
    end_time = forms.DateTimeField(required=False)
    price = forms.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.01'),
        error_messages={
            'required': 'Ticket price is required.',
            'min_value': 'Ticket price must be greater than 0.',
        },
    )


class RoomForm(forms.Form):

    cinema_id = forms.IntegerField()
    room_number = forms.CharField(max_length=10)
    total_rows = forms.IntegerField(min_value=1, max_value=52)
    total_cols = forms.IntegerField(min_value=1, max_value=50)

    def clean_room_number(self):
        room_number = self.cleaned_data['room_number'].strip()
        if not room_number:
            raise forms.ValidationError('Room number is required.')
        return room_number


class RoomUpdateForm(RoomForm):
    # Every field is optional on update
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        del self.fields['cinema_id']
        for field in self.fields.values():
            field.required = False

    def clean_room_number(self):
        room_number = (self.cleaned_data.get('room_number') or '').strip()
        return room_number or None
