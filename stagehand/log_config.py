# stagehand/log_config.py
import os
import yaml
import logging
import logging.config
from pathlib import Path
from typing import Optional, Union

PACKAGE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "logging_config.yaml"

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(config_path: Optional[Union[str, Path]] = None) -> dict:
    """
    从 YAML 文件加载日志配置并应用。
    环境变量 LOG_LEVEL 可以覆盖 root 日志级别。
    由进程入口调用，导入 stagehand 本身不会修改日志配置。
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    with open(path, 'r', encoding='utf-8') as f:
        logging_config = yaml.safe_load(f)

    env_log_level = os.getenv("LOG_LEVEL")
    if env_log_level and env_log_level.upper() in VALID_LEVELS:
        logging_config.setdefault('root', {})['level'] = env_log_level.upper()

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured from {path}")
    return logging_config
