from django.apps import AppConfig


class AntibotConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "antibot"
    verbose_name = "Anti-Bot"
