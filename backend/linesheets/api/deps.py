from linesheets.config.settings import get_settings
from linesheets.modules.pipeline import MessagePipeline


def get_pipeline() -> MessagePipeline:
    """Pipeline del proceso (se construye una sola vez)."""
    from linesheets.main import get_linesheets_app
    return get_linesheets_app().pipeline


def get_channel_secret() -> str:
    return get_settings().LINE_CHANNEL_SECRET
