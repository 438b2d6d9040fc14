from django.apps import AppConfig


class NotificationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notification'
    verbose_name = 'Notifications'

    def ready(self):
        # Registers the payment_reconciled receiver.
        import apps.notification.signals  # noqa: F401
