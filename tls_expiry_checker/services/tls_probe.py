"""
TLS证书探测服务
"""
import ssl
import socket
from datetime import datetime, timezone
from typing import Callable, Optional
import logging

from ..interfaces import ProbeInterface
from ..models import ProbeResult
from .error_handler import ProbeErrorHandler

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TLSProbe(ProbeInterface):
    """TLS证书探测器实现"""

    def __init__(self, timeout: Optional[float] = None, port: int = 443,
                 clock: Callable[[], datetime] = utc_now,
                 error_handler: Optional[ProbeErrorHandler] = None):
        """
        初始化TLS证书探测器

        Args:
            timeout: 连接和握手超时时间（秒），None 表示不设置超时
            port: TLS端口，默认443
            clock: 返回当前UTC时间的函数
            error_handler: 错误处理器
        """
        self.timeout = timeout
        self.port = port
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self.error_handler = error_handler or ProbeErrorHandler()

    def check(self, domain: str) -> ProbeResult:
        """
        探测单个域名的证书剩余天数

        Args:
            domain: 要检查的域名

        Returns:
            ProbeResult: 成功时为剩余天数，失败时为错误描述
        """
        try:
            if not domain:
                raise ValueError("域名不能为空")
            cert = self._get_leaf_certificate(domain)
            expiry_date = self._parse_expiry_date(cert)
            days = self._calculate_days_until_expiry(expiry_date)

        except Exception as e:
            error_info = self.error_handler.handle_probe_error(domain, e)
            return ProbeResult.error(domain, error_info['description'])

        self.logger.debug(f"域名 {domain} 证书过期时间: {expiry_date.isoformat()}")
        return ProbeResult.ok(domain, days)

    def _get_leaf_certificate(self, domain: str) -> dict:
        """
        完成TLS握手并读取叶子证书，读取后立即关闭连接

        Args:
            domain: 域名

        Returns:
            dict: 叶子证书信息

        Raises:
            OSError: DNS解析、连接或握手失败
            ssl.SSLError: 证书验证失败
        """
        context = ssl.create_default_context()

        with socket.create_connection((domain, self.port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=domain) as ssock:
                cert = ssock.getpeercert()

        if not cert:
            raise ssl.SSLError(f"无法获取域名 {domain} 的TLS证书")

        return cert

    def _parse_expiry_date(self, cert: dict) -> datetime:
        """
        解析证书过期时间

        Args:
            cert: 证书信息

        Returns:
            datetime: UTC过期时间
        """
        not_after = cert.get('notAfter')
        if not not_after:
            raise ValueError("证书中未找到过期时间信息")

        # 格式：'Dec 31 23:59:59 2024 GMT'
        expiry_date = datetime.strptime(not_after, '%b %d %H:%M:%S %Y %Z')
        return expiry_date.replace(tzinfo=timezone.utc)

    def _calculate_days_until_expiry(self, expiry_date: datetime) -> int:
        """
        计算距离过期的天数，向零取整

        Args:
            expiry_date: 过期时间

        Returns:
            int: 剩余天数（负数表示已过期）
        """
        delta = expiry_date - self.clock()
        return int(delta.total_seconds() / SECONDS_PER_DAY)
