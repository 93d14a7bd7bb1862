from django.urls import path
from . import views

urlpatterns = [
    path('', views.booking_list, name='booking_list'),
    path('<int:booking_id>/', views.booking_detail, name='booking_detail'),
    path('<int:booking_id>/tickets/', views.booking_tickets, name='booking_tickets'),

    path('<int:booking_id>/confirm/', views.confirm_booking, name='confirm_booking'),
    path('<int:booking_id>/cancel/', views.cancel_booking, name='cancel_booking'),

    path('showtime/<int:showtime_id>/seats/', views.booked_seats, name='booked_seats'),
]
