"""
日志服务
"""
import os
import logging
import threading
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from ..interfaces import LoggerServiceInterface
from ..models import ProbeResult


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = "tls_expiry_checker", log_level: Optional[str] = None):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        # 探测线程会并发更新统计
        self._stats_lock = threading.Lock()
        self.execution_stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'start_time': None,
            'end_time': None,
            'total_domains': 0,
            'successful_checks': 0,
            'failed_checks': 0,
            'errors': []
        }

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)

        self.logger.propagate = False

    def log_batch_start(self, domain_count: int):
        """
        记录批量检查开始

        Args:
            domain_count: 要检查的域名数量
        """
        with self._stats_lock:
            self.execution_stats['start_time'] = datetime.now(timezone.utc)
            self.execution_stats['total_domains'] = domain_count

        self.logger.info(f"开始TLS证书检查，共 {domain_count} 个域名")

    def log_group(self, group_num: int, total_groups: int, group_size: int):
        """记录分组进度"""
        self.logger.info(f"处理第 {group_num}/{total_groups} 组域名，包含 {group_size} 个域名")

    def log_probe_result(self, domain: str, result: ProbeResult):
        """
        记录单个域名的探测结果

        Args:
            domain: 域名
            result: 探测结果
        """
        with self._stats_lock:
            if result.is_ok:
                self.execution_stats['successful_checks'] += 1
            else:
                self.execution_stats['failed_checks'] += 1

        if not result.is_ok:
            # 失败原因已由探测器记录
            self.logger.debug(f"证书检查失败 - 域名: {domain}, 错误: {result.error_message}")
        elif result.is_expired:
            self.logger.warning(
                f"证书已过期 - 域名: {domain}, 已过期: {abs(result.days_until_expiry)} 天"
            )
        else:
            self.logger.info(f"证书检查完成 - 域名: {domain}, 剩余天数: {result.days_until_expiry} 天")

    def log_error(self, domain: str, error: Exception):
        """
        记录错误信息

        Args:
            domain: 域名
            error: 异常对象
        """
        error_info = {
            'domain': domain,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

        with self._stats_lock:
            self.execution_stats['errors'].append(error_info)

        self.logger.error(
            f"域名 {domain} 检查时发生错误: {type(error).__name__}: {str(error)}"
        )
        self.logger.debug(f"域名 {domain} 错误堆栈跟踪:\n{traceback.format_exc()}")

    def log_batch_end(self):
        """记录批量检查结束"""
        with self._stats_lock:
            self.execution_stats['end_time'] = datetime.now(timezone.utc)
            stats = dict(self.execution_stats)

        if stats['start_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()
        else:
            duration = 0

        self.logger.info(
            f"TLS证书检查完成，耗时 {duration:.2f} 秒: "
            f"总计 {stats['total_domains']} 个域名, "
            f"成功 {stats['successful_checks']} 个, "
            f"失败 {stats['failed_checks']} 个"
        )

    def log_request_time(self, request_time: str):
        """记录请求处理时间"""
        self.logger.info(f"Request took {request_time} to process")

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        self.logger.info("系统配置信息:")
        for key, value in config.items():
            self.logger.info(f"  {key}: {value}")

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        with self._stats_lock:
            stats = dict(self.execution_stats)
            errors = list(stats['errors'])

        duration = 0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()

        return {
            'start_time': stats['start_time'].isoformat() if stats['start_time'] else None,
            'end_time': stats['end_time'].isoformat() if stats['end_time'] else None,
            'duration_seconds': duration,
            'total_domains': stats['total_domains'],
            'successful_checks': stats['successful_checks'],
            'failed_checks': stats['failed_checks'],
            'error_count': len(errors),
            'errors': errors
        }

    def log_execution_summary(self, error_statistics: Optional[Dict[str, Any]] = None):
        """
        记录执行摘要

        Args:
            error_statistics: 探测错误统计（按类别计数）
        """
        summary = self.get_execution_summary()

        self.logger.info(
            f"执行摘要: 总域名数 {summary['total_domains']}, "
            f"成功 {summary['successful_checks']}, "
            f"失败 {summary['failed_checks']}, "
            f"执行时长 {summary['duration_seconds']:.2f} 秒"
        )

        if error_statistics and error_statistics['total_errors']:
            categories = ", ".join(f"{name}: {count}" for name, count in error_statistics['categories'].items())
            self.logger.info(f"探测错误统计: 共 {error_statistics['total_errors']} 个 ({categories})")

        if summary['errors']:
            self.logger.info(f"未处理的错误数量: {summary['error_count']}")
            for i, error in enumerate(summary['errors'][:5], 1):
                self.logger.info(f"  错误 {i}: {error['domain']} - {error['error_type']}: {error['error_message']}")

            if len(summary['errors']) > 5:
                self.logger.info(f"  ... 还有 {len(summary['errors']) - 5} 个错误")

    def reset_stats(self):
        """重置执行统计"""
        with self._stats_lock:
            self.execution_stats = self._empty_stats()
