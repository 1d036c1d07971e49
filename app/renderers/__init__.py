from app.renderers.telegram_renderer import TelegramDeletionRenderer

__all__ = ["TelegramDeletionRenderer"]
