from django.apps import AppConfig


class AlertsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'alerts'
    verbose_name = 'Alertas'

    def ready(self):
        # Alerts for status changes and balance resolution
        import alerts.signals  # noqa: F401
