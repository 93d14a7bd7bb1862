from django.contrib import admin
from accounts.models import UserProfile

@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'full_name', 'role', 'status', 'created_at')
    list_filter = ('role', 'status', 'created_at')
    search_fields = ('user__username', 'user__email', 'full_name')
    readonly_fields = ('created_at', 'updated_at')
    actions = ['lock_accounts', 'unlock_accounts']

    fieldsets = (
        ('User', {
            'fields': ('user', 'full_name', 'phone', 'address')
        }),
        ('Access', {
            'fields': ('role', 'status')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.action(description="Lock selected accounts")
    def lock_accounts(self, request, queryset):
        updated = queryset.update(status=UserProfile.STATUS_LOCKED)
        self.message_user(request, f"{updated} accounts locked.")

    @admin.action(description="Unlock selected accounts")
    def unlock_accounts(self, request, queryset):
        updated = queryset.update(status=UserProfile.STATUS_ACTIVE)
        self.message_user(request, f"{updated} accounts unlocked.")
