from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.handlers import register_handlers
        from shared.infrastructure.bus import event_bus

        register_handlers(event_bus)
