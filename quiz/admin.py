from django.contrib import admin
from .models import Test, Question, Answer, Comment


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0


class QuestionAdmin(admin.ModelAdmin):
    list_display = ('id', 'test', 'order', 'text')
    search_fields = ['text']
    inlines = [AnswerInline]


class TestAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'subject', 'creator', 'created_at')
    search_fields = ('title', 'subject')
    list_filter = ('subject',)
    actions = ['delete_selected_data']

    def delete_selected_data(self, request, queryset):
        count = queryset.count()
        queryset.delete()
        self.message_user(request, f"{count} ta test muvaffaqiyatli o'chirildi.")

    delete_selected_data.short_description = "Tanlangan testlarni o'chirish"


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'test', 'user', 'created_at')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'


admin.site.register(Test, TestAdmin)
admin.site.register(Question, QuestionAdmin)
