from django.apps import AppConfig


class TfcConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core.tfc'
    label = 'tfc'
    verbose_name = 'Tax-Free Childcare'
