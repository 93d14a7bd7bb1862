from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Cinema',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('address', models.TextField()),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('email', models.EmailField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Movie',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('genre', models.CharField(blank=True, max_length=50)),
                ('duration', models.IntegerField(help_text='Duration in minutes')),
                ('poster', models.URLField(blank=True, max_length=255)),
                ('trailer_url', models.URLField(blank=True, max_length=255)),
                ('release_date', models.DateField()),
                ('end_date', models.DateField()),
                ('status', models.CharField(choices=[('COMING_SOON', 'Coming Soon'), ('NOW_SHOWING', 'Now Showing'), ('ENDED', 'Ended')], db_index=True, default='COMING_SOON', max_length=20)),
                ('age_rating', models.CharField(blank=True, max_length=10)),
                ('director', models.CharField(blank=True, max_length=255)),
                ('cast', models.TextField(blank=True, help_text='Comma separated list of actors')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-release_date', 'title'],
                'constraints': [models.CheckConstraint(condition=models.Q(('release_date__lte', models.F('end_date'))), name='movie_release_not_after_end')],
            },
        ),
        migrations.CreateModel(
            name='Refreshment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('picture', models.URLField(blank=True, max_length=255)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('is_current', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Room',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('room_number', models.CharField(max_length=10)),
                ('total_rows', models.PositiveIntegerField()),
                ('total_cols', models.PositiveIntegerField()),
                ('total_seats', models.PositiveIntegerField(editable=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cinema', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rooms', to='movies.cinema')),
            ],
            options={
                'ordering': ['cinema', 'room_number'],
                'constraints': [models.UniqueConstraint(fields=('cinema', 'room_number'), name='unique_room_per_cinema')],
            },
        ),
        migrations.CreateModel(
            name='Seat',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('seat_number', models.CharField(max_length=10)),
                ('row', models.CharField(max_length=5)),
                ('col', models.PositiveIntegerField()),
                ('seat_type', models.CharField(choices=[('NORMAL', 'Normal'), ('VIP', 'VIP')], default='NORMAL', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('room', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='seats', to='movies.room')),
            ],
            options={
                'ordering': ['room', 'id'],
                'constraints': [models.UniqueConstraint(fields=('room', 'seat_number'), name='unique_seat_per_room')],
            },
        ),
        migrations.CreateModel(
            name='Showtime',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_time', models.DateTimeField()),
                ('end_time', models.DateTimeField()),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('movie', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='showtimes', to='movies.movie')),
                ('room', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='showtimes', to='movies.room')),
            ],
            options={
                'ordering': ['start_time'],
                'indexes': [models.Index(fields=['room', 'start_time'], name='showtime_room_start_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('start_time__lt', models.F('end_time'))), name='showtime_start_before_end')],
            },
        ),
    ]
