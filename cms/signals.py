"""
Model signal handlers.

Deleting a Media row removes the stored file it points at.
"""

import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from cms.models import Media
from cms.services.image_pipeline import ImagePipeline

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=Media)
def delete_media_file(sender, instance, **kwargs):
    if not instance.path:
        return
    try:
        ImagePipeline().delete_image(instance.path)
    except OSError as e:
        logger.error(f"Could not delete file for media {instance.pk}: {e}")
