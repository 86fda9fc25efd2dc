from django.apps import AppConfig


class PlatformSettingsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core.settings'
    label = 'settings'
    verbose_name = 'Platform Settings'
