import logging
import sys
from pathlib import Path

# Логи пишутся рядом с модулем
log_dir = Path(__file__).parent
log_dir.mkdir(exist_ok=True)


def setup_logging(name: str = "laneboard.api", filename: str = "api_requests.log") -> logging.Logger:
    """Configure the request/stream logger: file + stdout"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    # Повторный импорт не должен дублировать обработчики
    if logger.handlers:
        return logger

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(log_dir / filename, encoding='utf-8')
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


api_logger = setup_logging()
