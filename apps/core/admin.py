from django.contrib import admin
from .models import Student, MealLog, PickupCode, VerificationEvent, StaffToken, Settings


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['short_id', 'full_name', 'meal_plan', 'is_active', 'subscription_end_date']
    list_filter = ['is_active', 'meal_plan']
    search_fields = ['full_name', 'short_id', 'phone']
    readonly_fields = ['id', 'qr_nonce', 'created_at', 'updated_at']


class AppendOnlyAdmin(admin.ModelAdmin):
    """Ledger-style tables are written by the engine only"""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(MealLog)
class MealLogAdmin(AppendOnlyAdmin):
    list_display = ['date', 'meal', 'student', 'status', 'access_method', 'created_at']
    list_filter = ['date', 'meal', 'access_method']
    search_fields = ['student__full_name', 'student__short_id']


@admin.register(PickupCode)
class PickupCodeAdmin(AppendOnlyAdmin):
    list_display = ['code', 'student', 'created_at', 'expires_at', 'is_used']
    list_filter = ['is_used']


@admin.register(VerificationEvent)
class VerificationEventAdmin(AppendOnlyAdmin):
    list_display = ['created_at', 'result', 'access_method', 'meal', 'student', 'staff_token']
    list_filter = ['result', 'access_method']


@admin.register(StaffToken)
class StaffTokenAdmin(admin.ModelAdmin):
    list_display = ['label', 'active', 'issued_at', 'expires_at']
    readonly_fields = ['token_hash']


@admin.register(Settings)
class SettingsAdmin(admin.ModelAdmin):
    list_display = ['timezone', 'slot_policy', 'meal_cutoff_hour', 'code_ttl_minutes']

    def has_add_permission(self, request):
        return not Settings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
