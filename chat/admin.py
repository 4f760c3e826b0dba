from django.contrib import admin

from .models import Conversation, Message


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    readonly_fields = ('role', 'content', 'created_at')


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'project', 'piece_type', 'updated_at')
    list_filter = ('piece_type',)
    search_fields = ('title', 'project__name')
    inlines = [MessageInline]
