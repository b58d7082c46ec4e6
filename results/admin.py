from django.contrib import admin
from .models import Statistic, AnswerRecord


class AnswerRecordInline(admin.TabularInline):
    model = AnswerRecord
    extra = 0
    readonly_fields = ('question', 'selected_answers', 'is_correct')
    can_delete = False


@admin.register(Statistic)
class StatisticAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'test', 'score', 'correct_count', 'total_questions', 'created_at')
    search_fields = ('user__username', 'test__title')
    ordering = ('-created_at',)
    list_filter = ('created_at',)
    date_hierarchy = 'created_at'
    inlines = [AnswerRecordInline]
