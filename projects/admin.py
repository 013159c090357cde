from django.contrib import admin
from .models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('title', 'specialization', 'is_assigned', 'team', 'guide', 'updated_at')
    list_filter = ('specialization', 'is_assigned')
    search_fields = ('title', 'description')
    readonly_fields = ('version',)
