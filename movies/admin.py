from django.contrib import admin
from .models import Movie, Refreshment
from .theater_models import Cinema, Room, Seat, Showtime
from django.utils.html import format_html

@admin.register(Movie)
class MovieAdmin(admin.ModelAdmin):
    list_display = ['title', 'release_date', 'end_date', 'status', 'duration_formatted', 'poster_preview']

    list_filter = ['status', 'genre', 'release_date']

    search_fields = ['title', 'director', 'cast']

    fieldsets = [
        ('Basic Info', {
            'fields': ['title', 'description', 'genre', 'poster', 'trailer_url']
        }),
        ('Details', {
            'fields': ['duration', 'age_rating', 'release_date', 'end_date']
        }),
        ('Cast & Crew', {
            'fields': ['director', 'cast']
        }),
        ('Status', {
            'fields': ['status']
        }),
    ]

    def duration_formatted(self, obj):
        return obj.duration_formatted()
    duration_formatted.short_description = 'Duration'

    def poster_preview(self, obj):
        if obj.poster:
            return format_html(
                '<img src="{}" style="width: 50px; height: 75px; object-fit: cover; border-radius: 4px;" />',
                obj.poster
            )
        return 'No Poster'
    poster_preview.short_description = 'Poster'

@admin.register(Refreshment)
class RefreshmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'price', 'is_current']
    list_filter = ['is_current']
    search_fields = ['name']

@admin.register(Cinema)
class CinemaAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email']
    search_fields = ['name', 'address']

class SeatInline(admin.TabularInline):
    model = Seat
    fields = ['seat_number', 'row', 'col', 'seat_type']
    extra = 0

@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ['room_number', 'cinema', 'total_rows', 'total_cols', 'total_seats']
    list_filter = ['cinema']

    search_fields = ['room_number', 'cinema__name']

    inlines = [SeatInline]

@admin.register(Showtime)
class ShowtimeAdmin(admin.ModelAdmin):
    list_display = ['movie', 'room', 'start_time', 'end_time', 'price']
    list_filter = ['room__cinema', 'movie']

    search_fields = ['movie__title', 'room__room_number']

    date_hierarchy = 'start_time'

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        if db_field.name == "room":
            kwargs["queryset"] = Room.objects.select_related('cinema').all()
        return super().formfield_for_foreignkey(db_field, request, **kwargs)
