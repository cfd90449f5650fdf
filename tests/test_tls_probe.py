"""
TLS证书探测器测试
"""
import pytest
from unittest.mock import patch, MagicMock
from datetime import datetime, timezone
import ssl
import socket

from tls_expiry_checker.services.tls_probe import TLSProbe
from tls_expiry_checker.models import ProbeResult

FIXED_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


def is_numeric(text: str) -> bool:
    return text.lstrip('-').isdigit()


class TestTLSProbe:
    """TLS证书探测器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.probe = TLSProbe(clock=fixed_clock)

    def test_init_defaults(self):
        """测试默认配置"""
        probe = TLSProbe()

        assert probe.timeout is None
        assert probe.port == 443

    def test_parse_expiry_date(self):
        """测试证书过期时间解析"""
        expiry_date = self.probe._parse_expiry_date({'notAfter': 'Dec 31 23:59:59 2024 GMT'})

        assert expiry_date == datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

    def test_parse_expiry_date_single_digit_day(self):
        """测试单数字日期（OpenSSL 使用两个空格填充）"""
        expiry_date = self.probe._parse_expiry_date({'notAfter': 'Jan  5 08:00:00 2025 GMT'})

        assert expiry_date.day == 5

    def test_parse_expiry_date_missing(self):
        """测试缺少过期时间的证书"""
        with pytest.raises(ValueError, match="证书中未找到过期时间信息"):
            self.probe._parse_expiry_date({})

    def test_calculate_days_exact(self):
        """测试整30天"""
        expiry = datetime(2024, 1, 31, tzinfo=timezone.utc)

        assert self.probe._calculate_days_until_expiry(expiry) == 30

    def test_calculate_days_truncates_toward_zero(self):
        """测试不足一天的部分向零取整"""
        assert self.probe._calculate_days_until_expiry(datetime(2024, 1, 31, 23, tzinfo=timezone.utc)) == 30
        assert self.probe._calculate_days_until_expiry(datetime(2023, 12, 31, 12, tzinfo=timezone.utc)) == 0
        assert self.probe._calculate_days_until_expiry(datetime(2023, 12, 1, tzinfo=timezone.utc)) == -31

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    @patch('tls_expiry_checker.services.tls_probe.ssl.create_default_context')
    def test_check_success(self, mock_context, mock_connection):
        """测试证书30天后过期"""
        mock_ssl_sock = MagicMock()
        mock_ssl_sock.getpeercert.return_value = {'notAfter': 'Jan 31 00:00:00 2024 GMT'}
        mock_context.return_value.wrap_socket.return_value.__enter__.return_value = mock_ssl_sock

        result = self.probe.check("example.com")

        assert result == ProbeResult.ok("example.com", 30)
        assert result.to_wire() == "30"
        mock_connection.assert_called_once_with(("example.com", 443), timeout=None)
        mock_context.return_value.wrap_socket.assert_called_once_with(
            mock_connection.return_value.__enter__.return_value,
            server_hostname="example.com"
        )

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    @patch('tls_expiry_checker.services.tls_probe.ssl.create_default_context')
    def test_check_closes_connection(self, mock_context, mock_connection):
        """测试读取证书后关闭连接"""
        mock_ssl_sock = MagicMock()
        mock_ssl_sock.getpeercert.return_value = {'notAfter': 'Jan 31 00:00:00 2024 GMT'}
        mock_context.return_value.wrap_socket.return_value.__enter__.return_value = mock_ssl_sock

        self.probe.check("example.com")

        mock_context.return_value.wrap_socket.return_value.__exit__.assert_called_once()
        mock_connection.return_value.__exit__.assert_called_once()

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    @patch('tls_expiry_checker.services.tls_probe.ssl.create_default_context')
    def test_check_uses_configured_timeout_and_port(self, mock_context, mock_connection):
        """测试使用配置的超时时间和端口"""
        mock_ssl_sock = MagicMock()
        mock_ssl_sock.getpeercert.return_value = {'notAfter': 'Jan 31 00:00:00 2024 GMT'}
        mock_context.return_value.wrap_socket.return_value.__enter__.return_value = mock_ssl_sock

        TLSProbe(timeout=5, port=8443, clock=fixed_clock).check("example.com")

        mock_connection.assert_called_once_with(("example.com", 8443), timeout=5)

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    def test_check_connection_refused(self, mock_connection):
        """测试连接被拒绝"""
        mock_connection.side_effect = ConnectionRefusedError(111, "Connection refused")

        result = self.probe.check("refused.example")

        assert result.is_ok is False
        assert "Connection refused" in result.to_wire()
        assert not is_numeric(result.to_wire())

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    def test_check_dns_failure(self, mock_connection):
        """测试DNS解析失败"""
        mock_connection.side_effect = socket.gaierror(-2, "Name or service not known")

        result = self.probe.check("nonexistent.invalid")

        assert result.is_ok is False
        assert "Name or service not known" in result.error_message

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    def test_check_timeout(self, mock_connection):
        """测试超时错误有独立的描述"""
        mock_connection.side_effect = socket.timeout("timed out")

        result = TLSProbe(timeout=1, clock=fixed_clock).check("slow.example")

        assert result.error_message.startswith("TimeoutError")

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    @patch('tls_expiry_checker.services.tls_probe.ssl.create_default_context')
    def test_check_certificate_verification_failure(self, mock_context, mock_connection):
        """测试证书验证失败"""
        mock_context.return_value.wrap_socket.side_effect = ssl.SSLCertVerificationError(
            1, "[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed"
        )

        result = self.probe.check("self-signed.example")

        assert result.is_ok is False
        assert "certificate verify failed" in result.error_message

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    @patch('tls_expiry_checker.services.tls_probe.ssl.create_default_context')
    def test_check_empty_certificate(self, mock_context, mock_connection):
        """测试未返回证书"""
        mock_ssl_sock = MagicMock()
        mock_ssl_sock.getpeercert.return_value = {}
        mock_context.return_value.wrap_socket.return_value.__enter__.return_value = mock_ssl_sock

        result = self.probe.check("example.com")

        assert result.is_ok is False
        assert "无法获取域名 example.com 的TLS证书" in result.error_message

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    def test_check_logs_one_line_on_failure(self, mock_connection):
        """测试失败时只记录一行诊断日志"""
        mock_connection.side_effect = ConnectionRefusedError(111, "Connection refused")

        with patch.object(self.probe.error_handler.logger, 'warning') as mock_warning:
            self.probe.check("refused.example")

        mock_warning.assert_called_once()
        assert "refused.example" in mock_warning.call_args[0][0]

    @patch('tls_expiry_checker.services.tls_probe.socket.create_connection')
    def test_check_empty_domain(self, mock_connection):
        """测试空域名返回错误结果且不发起连接"""
        result = self.probe.check("")

        assert result == ProbeResult.error("", "ValueError: 域名不能为空")
        mock_connection.assert_not_called()
