from django.apps import AppConfig


class RacingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "racing"
    verbose_name = "Racing"
