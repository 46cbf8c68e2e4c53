from laneboard.core.config import Settings, get_settings
