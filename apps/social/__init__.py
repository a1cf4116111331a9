from django.apps import AppConfig


class SocialConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.social'
    label = 'social'
    verbose_name = 'Đánh giá'

    def ready(self):
        from . import receivers  # noqa: F401
