from django.contrib import admin
from .models import Profile

@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'avatar', 'updated_at')
    search_fields = ('user__username', 'user__email')
    ordering = ('-updated_at',)
    list_filter = ('updated_at',)
