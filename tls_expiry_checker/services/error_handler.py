"""
探测错误处理服务
"""
import socket
import ssl
import threading
from typing import Any, Dict
from datetime import datetime, timezone
import logging


class ProbeErrorHandler:
    """探测错误处理器"""

    def __init__(self):
        """初始化探测错误处理器"""
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        # 按错误类别计数
        self.category_counts: Dict[str, int] = {}

    def classify_error(self, error: Exception) -> str:
        """
        对错误进行分类

        Args:
            error: 异常对象

        Returns:
            str: 错误类别
        """
        # 顺序有意义：socket.timeout 和 SSLError 都是 OSError 的子类
        if isinstance(error, (socket.timeout, TimeoutError)):
            return 'timeout'
        if isinstance(error, socket.gaierror):
            return 'dns'
        if isinstance(error, ConnectionRefusedError):
            return 'connection_refused'
        if isinstance(error, ssl.SSLCertVerificationError):
            return 'certificate'
        if isinstance(error, ssl.SSLError):
            return 'ssl'
        if isinstance(error, OSError):
            return 'network'
        return 'unknown'

    def format_description(self, error: Exception) -> str:
        """
        生成错误描述文本

        Args:
            error: 异常对象

        Returns:
            str: "<错误类型>: <错误信息>"
        """
        error_type = type(error).__name__
        message = str(error)

        # socket.timeout 在 Python 3.10 起是 TimeoutError 的别名
        if self.classify_error(error) == 'timeout':
            error_type = 'TimeoutError'
            message = message or 'timed out'

        if not message:
            return error_type
        return f"{error_type}: {message}"

    def handle_probe_error(self, domain: str, error: Exception) -> Dict[str, Any]:
        """
        处理探测错误

        Args:
            domain: 域名
            error: 异常对象

        Returns:
            Dict[str, Any]: 错误处理结果
        """
        error_info = {
            'domain': domain,
            'error_type': type(error).__name__,
            'category': self.classify_error(error),
            'description': self.format_description(error),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

        with self._lock:
            category = error_info['category']
            self.category_counts[category] = self.category_counts.get(category, 0) + 1

        self.logger.warning(
            f"域名 {domain} 探测失败: {error_info['description']}（建议: {error_info['suggested_action']}）"
        )

        return error_info

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        category = self.classify_error(error)
        error_message = str(error).lower()

        if category == 'timeout':
            return "检查网络连接，考虑增加 PROBE_TIMEOUT"
        elif category == 'dns':
            return "检查域名是否正确，DNS服务器是否可用"
        elif category == 'connection_refused':
            return "检查目标服务器是否运行，端口是否正确"
        elif category == 'certificate':
            return "证书验证失败，可能是自签名证书或证书链问题"
        elif category == 'ssl':
            if 'handshake failure' in error_message:
                return "TLS握手失败，检查TLS版本兼容性"
            return "TLS连接问题，检查服务器TLS配置"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        else:
            return "检查网络连接和服务器状态"

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        获取错误统计信息

        Returns:
            Dict[str, Any]: 错误统计
        """
        with self._lock:
            categories = dict(self.category_counts)

        if not categories:
            return {
                'total_errors': 0,
                'categories': {},
                'most_common_category': None
            }

        most_common = max(categories.items(), key=lambda x: x[1])

        return {
            'total_errors': sum(categories.values()),
            'categories': categories,
            'most_common_category': most_common[0]
        }

    def reset(self):
        """清空错误记录"""
        with self._lock:
            self.category_counts = {}
