import atexit

from django.apps import AppConfig


class CafeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cafe"
    verbose_name = "Cafe orders"

    fanout = None

    def ready(self):
        from django.conf import settings

        from cafe.infra.notifications import build_fanout

        self.fanout = build_fanout(settings)
        atexit.register(self.fanout.shutdown, wait=False)
