from django.contrib import admin
from .models import Project, PuzzlePiece


class PuzzlePieceInline(admin.TabularInline):
    model = PuzzlePiece
    extra = 0
    can_delete = False
    fields = ('piece_type', 'status', 'summary', 'updated_at')
    readonly_fields = ('piece_type', 'updated_at')


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'created_at', 'updated_at')
    list_filter = ('created_at',)
    search_fields = ('name', 'description', 'owner__username')
    date_hierarchy = 'created_at'
    readonly_fields = ('project_id',)
    inlines = [PuzzlePieceInline]


@admin.register(PuzzlePiece)
class PuzzlePieceAdmin(admin.ModelAdmin):
    list_display = ('project', 'piece_type', 'status', 'updated_at')
    list_filter = ('piece_type', 'status')
    search_fields = ('project__name', 'summary')
    raw_id_fields = ('project',)
    readonly_fields = ('piece_type',)
