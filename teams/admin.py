from django.contrib import admin
from .models import Team, TeamMember, Invitation


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    readonly_fields = ('joined_at',)


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'number', 'leader', 'status', 'project', 'guide', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'number', 'leader__username')
    inlines = [TeamMemberInline]


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ('invited_email', 'team', 'inviter', 'status', 'created_at', 'responded_at')
    list_filter = ('status', 'created_at')
    search_fields = ('invited_email', 'invited_name', 'team__name')
