"""Order decision notifications."""

from .service import OrderNotifier


__all__ = ["OrderNotifier"]
