from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

class Movie(models.Model):
    STATUS_COMING_SOON = 'COMING_SOON'
    STATUS_NOW_SHOWING = 'NOW_SHOWING'
    STATUS_ENDED = 'ENDED'
    STATUS_CHOICES = (
        (STATUS_COMING_SOON, 'Coming Soon'),
        (STATUS_NOW_SHOWING, 'Now Showing'),
        (STATUS_ENDED, 'Ended'),
    )

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    genre = models.CharField(max_length=50, blank=True)
    duration = models.IntegerField(help_text="Duration in minutes")

    poster = models.URLField(max_length=255, blank=True)
    trailer_url = models.URLField(max_length=255, blank=True)  # YouTube URL

    release_date = models.DateField()
    end_date = models.DateField()

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMING_SOON, db_index=True)

    age_rating = models.CharField(max_length=10, blank=True)  # G, PG, PG-13, R
    director = models.CharField(max_length=255, blank=True)
    cast = models.TextField(blank=True, help_text="Comma separated list of actors")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-release_date', 'title']
        constraints = [
            models.CheckConstraint(
                condition=Q(release_date__lte=F('end_date')),
                name='movie_release_not_after_end',
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.release_date.year})"

    def clean(self):
        if self.release_date and self.end_date and self.release_date > self.end_date:
            raise ValidationError({'end_date': 'End date must not be before the release date.'})

    @property
    def is_ended(self):
        return self.status == self.STATUS_ENDED

    def is_screening_on(self, day):
        return self.release_date <= day <= self.end_date

    def duration_formatted(self):

        hours = self.duration // 60
        minutes = self.duration % 60
        return f"{hours}h {minutes}m"

    def get_cast_list(self):
        return [name.strip() for name in self.cast.split(',') if name.strip()]

class Refreshment(models.Model):

    name = models.CharField(max_length=200)
    picture = models.URLField(max_length=255, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    is_current = models.BooleanField(default=True)  # Soft disable: no longer sold

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

# Register the theater models with the app registry
from .theater_models import Cinema, Room, Seat, Showtime  # noqa: E402,F401
