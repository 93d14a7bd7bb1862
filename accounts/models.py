from django.db import models
from django.contrib.auth.models import User

class UserProfile(models.Model):
    ROLE_ADMIN = 'ADMIN'
    ROLE_CUSTOMER = 'CUSTOMER'
    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Admin'),
        (ROLE_CUSTOMER, 'Customer'),
    )

    STATUS_ACTIVE = 'ACTIVE'
    STATUS_LOCKED = 'LOCKED'
    STATUS_CHOICES = (
        (STATUS_ACTIVE, 'Active'),
        (STATUS_LOCKED, 'Locked'),
    )

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    full_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'accounts_userprofile'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.username}'s Profile"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN or self.user.is_staff or self.user.is_superuser

    @property
    def is_locked(self):
        return self.status == self.STATUS_LOCKED

    def lock(self):
        self.status = self.STATUS_LOCKED
        self.save(update_fields=['status', 'updated_at'])

    def unlock(self):
        self.status = self.STATUS_ACTIVE
        self.save(update_fields=['status', 'updated_at'])
