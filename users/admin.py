from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'name', 'roll_no', 'specialization', 'team', 'is_staff')
    list_filter = ('role', 'specialization', 'is_staff', 'is_active')
    search_fields = ('username', 'email', 'name', 'roll_no')
    fieldsets = UserAdmin.fieldsets + (
        ('Capstone', {'fields': ('role', 'name', 'roll_no', 'specialization', 'max_teams', 'designation', 'team', 'selected_project')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Capstone', {'fields': ('role', 'name', 'roll_no', 'specialization', 'max_teams')}),
    )
