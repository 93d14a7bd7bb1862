from django.urls import path
from . import views

urlpatterns = [
    path('movies/', views.movie_list, name='movie_list'),
    path('movies/<int:movie_id>/', views.movie_detail, name='movie_detail'),
    path('cinemas/', views.cinema_list, name='cinema_list'),
    path('refreshments/', views.refreshment_list, name='refreshment_list'),

    path('rooms/', views.room_create, name='room_create'),
    path('rooms/<int:room_id>/', views.room_detail, name='room_detail'),

    path('showtimes/', views.showtime_list, name='showtime_list'),
    path('showtimes/<int:showtime_id>/', views.showtime_detail, name='showtime_detail'),
    path('showtimes/movie/<int:movie_id>/', views.showtimes_for_movie, name='showtimes_for_movie'),
]
