"""
配置服务
"""
import os
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .batch_runner import DEFAULT_CONCURRENCY


class ConfigError(Exception):
    """配置无效"""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("配置无效: " + "; ".join(errors))


@dataclass
class CheckerConfig:
    """检查服务配置"""
    concurrency: int = DEFAULT_CONCURRENCY
    probe_timeout: Optional[float] = None
    probe_port: int = 443
    max_body_bytes: int = 1048576
    log_level: str = 'INFO'

    VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "CheckerConfig":
        """
        从环境变量读取配置

        Args:
            environ: 环境变量字典，默认为 os.environ

        Returns:
            CheckerConfig: 配置对象

        Raises:
            ConfigError: 存在无法解析或取值无效的配置项
        """
        environ = os.environ if environ is None else environ
        errors = []

        def read(name, parser, default):
            raw = environ.get(name, '').strip()
            if not raw:
                return default
            try:
                return parser(raw)
            except ValueError:
                errors.append(f"环境变量 {name} 的值无效: {raw}")
                return default

        config = cls(
            concurrency=read('CHECKER_CONCURRENCY', int, DEFAULT_CONCURRENCY),
            probe_timeout=read('PROBE_TIMEOUT', float, None),
            probe_port=read('PROBE_PORT', int, 443),
            max_body_bytes=read('MAX_BODY_BYTES', int, 1048576),
            log_level=read('LOG_LEVEL', str.upper, 'INFO')
        )

        errors.extend(config.validate())
        if errors:
            logging.getLogger(__name__).error(f"配置验证失败: {errors}")
            raise ConfigError(errors)

        return config

    def validate(self) -> List[str]:
        """
        验证配置取值

        Returns:
            List[str]: 错误列表，为空表示配置有效
        """
        errors = []

        if self.concurrency < 1:
            errors.append(f"CHECKER_CONCURRENCY 必须大于0，当前值: {self.concurrency}")

        if self.probe_timeout is not None and self.probe_timeout <= 0:
            errors.append(f"PROBE_TIMEOUT 必须大于0，当前值: {self.probe_timeout}")

        if not 1 <= self.probe_port <= 65535:
            errors.append(f"PROBE_PORT 必须在1-65535之间，当前值: {self.probe_port}")

        if self.max_body_bytes < 1:
            errors.append(f"MAX_BODY_BYTES 必须大于0，当前值: {self.max_body_bytes}")

        if self.log_level not in self.VALID_LOG_LEVELS:
            errors.append(f"无效的日志级别: {self.log_level}，有效值: {', '.join(self.VALID_LOG_LEVELS)}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """用于日志记录的配置字典"""
        config = asdict(self)
        if config['probe_timeout'] is None:
            config['probe_timeout'] = 'none'
        return config
