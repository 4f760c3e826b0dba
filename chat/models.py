from django.db import models


class Conversation(models.Model):
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE, related_name='conversations')
    piece = models.ForeignKey('projects.PuzzlePiece', on_delete=models.SET_NULL, related_name='conversations',
                              null=True, blank=True)
    piece_type = models.CharField(max_length=20, blank=True, null=True)
    title = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return self.title or f"Conversation {self.id}"


class Message(models.Model):
    ROLE_CHOICES = [
        ('user', 'User'),
        ('assistant', 'Assistant'),
        ('system', 'System'),
    ]

    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['conversation', 'created_at'], name='chat_messag_convers_3a9d1e_idx'),
        ]

    def __str__(self):
        return f"{self.role}: {self.content[:50]}..."
