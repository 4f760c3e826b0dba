from django.db import models, transaction
from django.contrib.auth.models import User
import uuid

from .pieces import PIECE_METADATA, PIECE_TYPES, PieceStatus, PieceType
from .unlock import PieceSnapshot, initial_statuses


class Project(models.Model):
    # Keep default integer ID for foreign key compatibility
    # Use project_id for URLs and external references
    project_id = models.UUIDField(unique=True, default=uuid.uuid4, editable=False, db_index=True)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="projects")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['owner', '-updated_at'], name='projects_pr_owner_i_5b1f0d_idx'),
        ]

    def __str__(self):
        return self.name

    @classmethod
    def create_with_pieces(cls, owner, name, description=None):
        """
        Create a project together with its five puzzle pieces.

        Pieces without prerequisites start `available`, the rest `locked`.
        """
        statuses = initial_statuses()
        with transaction.atomic():
            project = cls.objects.create(owner=owner, name=name, description=description)
            PuzzlePiece.objects.bulk_create([
                PuzzlePiece(project=project, piece_type=piece_type, status=statuses[piece_type])
                for piece_type in PIECE_TYPES
            ])
        return project

    def ordered_pieces(self):
        """Pieces in display order."""
        rank = {piece_type: index for index, piece_type in enumerate(PIECE_TYPES)}
        return sorted(self.pieces.all(), key=lambda p: rank.get(p.piece_type, len(rank)))

    def progress(self):
        """Return (completed, total) piece counts."""
        statuses = list(self.pieces.values_list('status', flat=True))
        completed = sum(1 for status in statuses if status == PieceStatus.COMPLETE)
        return completed, len(statuses)


class PuzzlePiece(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='pieces')
    piece_type = models.CharField(max_length=20, choices=PieceType.choices)
    status = models.CharField(max_length=20, choices=PieceStatus.choices, default=PieceStatus.LOCKED)
    summary = models.TextField(blank=True, null=True)
    content = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['project', 'piece_type'], name='unique_piece_per_project'),
        ]
        indexes = [
            models.Index(fields=['project', 'status'], name='projects_pu_project_8c2e4a_idx'),
        ]

    def __str__(self):
        return f"{self.project.name} - {self.piece_type} ({self.status})"

    @property
    def metadata(self):
        return PIECE_METADATA.get(self.piece_type)

    def snapshot(self):
        return PieceSnapshot(id=self.id, piece_type=self.piece_type, status=self.status)
