from laneboard.logs.server_log import api_logger
from laneboard.logs.debug_log import debug_logger, log_function, DebugLogger
