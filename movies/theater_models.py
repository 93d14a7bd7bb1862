from django.db import models
from django.db.models import F, Q
from django.utils import timezone

class Cinema(models.Model):
    name = models.CharField(max_length=200)
    address = models.TextField()
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(max_length=100, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        ordering = ['name']

class Room(models.Model):
    cinema = models.ForeignKey(Cinema, on_delete=models.CASCADE, related_name='rooms')
    room_number = models.CharField(max_length=10)

    total_rows = models.PositiveIntegerField()
    total_cols = models.PositiveIntegerField()
    total_seats = models.PositiveIntegerField(editable=False)  # rows x cols

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.total_seats = self.total_rows * self.total_cols
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.cinema.name} - Room {self.room_number}"

    class Meta:
        ordering = ['cinema', 'room_number']
        constraints = [
            models.UniqueConstraint(fields=['cinema', 'room_number'], name='unique_room_per_cinema'),
        ]

class Seat(models.Model):
    TYPE_NORMAL = 'NORMAL'
    TYPE_VIP = 'VIP'
    TYPE_CHOICES = (
        (TYPE_NORMAL, 'Normal'),
        (TYPE_VIP, 'VIP'),
    )

    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name='seats')
    seat_number = models.CharField(max_length=10)  # A1, A2, B1, ...
    row = models.CharField(max_length=5)
    col = models.PositiveIntegerField()
    seat_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_NORMAL)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.room} - {self.seat_number}"

    class Meta:
        ordering = ['room', 'id']
        constraints = [
            models.UniqueConstraint(fields=['room', 'seat_number'], name='unique_seat_per_room'),
        ]

class Showtime(models.Model):
    movie = models.ForeignKey('movies.Movie', on_delete=models.CASCADE, related_name='showtimes')
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name='showtimes')

    # Half-open interval [start_time, end_time)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()

    price = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.movie.title} - {timezone.localtime(self.start_time):%Y-%m-%d %H:%M}"

    def overlaps(self, start, end):
        return self.start_time < end and self.end_time > start

    def has_started(self, now=None):
        return self.start_time <= (now or timezone.now())

    def get_formatted_time(self):

        return timezone.localtime(self.start_time).strftime("%I:%M %p")

    def get_formatted_date(self):

        return timezone.localtime(self.start_time).strftime("%d %b, %Y")

    class Meta:
        ordering = ['start_time']
        indexes = [
            models.Index(fields=['room', 'start_time'], name='showtime_room_start_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_time__lt=F('end_time')),
                name='showtime_start_before_end',
            ),
        ]
