"""
AWS Lambda函数入口点（API Gateway 代理集成）
"""
import base64
import binascii
import json
import time
from typing import Dict, Any, List, Optional

from .services.batch_runner import BatchRunner
from .services.config import CheckerConfig, ConfigError
from .services.error_handler import ProbeErrorHandler
from .services.logger import LoggerService
from .services.request_parser import RequestParser, RequestError
from .services.tls_probe import TLSProbe
from .models import CheckResponse

CHECKER_PATH = '/api/checker'


def format_duration(seconds: float) -> str:
    """
    按 Go time.Duration 的风格格式化耗时

    Args:
        seconds: 耗时（秒）

    Returns:
        str: 例如 "850ms"、"1.5s"、"2m5.25s"
    """
    nanos = round(seconds * 1e9)
    if nanos <= 0:
        return "0s"
    if nanos < 1000:
        return f"{nanos}ns"
    if nanos < 1000000:
        return _fraction(nanos, 3) + "µs"
    if nanos < 1000000000:
        return _fraction(nanos, 6) + "ms"

    hours, rest = divmod(nanos, 3600 * 1000000000)
    minutes, rest = divmod(rest, 60 * 1000000000)
    text = _fraction(rest, 9) + "s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return text


def _fraction(value: int, digits: int) -> str:
    """按给定小数位数输出，去掉末尾的零"""
    whole, frac = divmod(value, 10 ** digits)
    if not frac:
        return str(whole)
    return f"{whole}." + f"{frac:0{digits}d}".rstrip('0')


class CertExpiryService:
    """证书过期天数检查服务主类"""

    def __init__(self, config: Optional[CheckerConfig] = None):
        """
        初始化检查服务

        Args:
            config: 服务配置，为None时从环境变量读取
        """
        self.config = config or CheckerConfig.from_env()

        self.logger_service = LoggerService(log_level=self.config.log_level)
        self.error_handler = ProbeErrorHandler()
        self.probe = TLSProbe(
            timeout=self.config.probe_timeout,
            port=self.config.probe_port,
            error_handler=self.error_handler
        )
        self.batch_runner = BatchRunner(
            self.probe,
            concurrency=self.config.concurrency,
            logger_service=self.logger_service
        )
        self.request_parser = RequestParser(max_body_bytes=self.config.max_body_bytes)

        self.logger_service.log_configuration_info(self.config.to_dict())

    def check(self, domains: List[str]) -> CheckResponse:
        """
        检查一批域名

        Args:
            domains: 域名列表

        Returns:
            CheckResponse: 全部域名的检查结果和耗时
        """
        start_time = time.monotonic()
        self.logger_service.reset_stats()
        self.error_handler.reset()

        results = self.batch_runner.run(domains)

        execution_time = time.monotonic() - start_time
        request_time = format_duration(execution_time)
        self.logger_service.log_request_time(request_time)
        self.logger_service.log_execution_summary(self.error_handler.get_error_statistics())

        return CheckResponse(results=results, request_time=request_time, execution_time=execution_time)

    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        处理 API Gateway 事件

        Args:
            event: REST API (v1) 或 HTTP API (v2) 代理事件

        Returns:
            dict: API Gateway 代理响应
        """
        path = self._get_path(event)

        if path != CHECKER_PATH:
            return _error_response(404, "404 page not found")

        try:
            body = self._get_body(event)
            domains = self.request_parser.parse(body, event.get('headers'))
        except RequestError as e:
            self.logger_service.logger.warning(f"无效请求 ({e.status_code}): {e.message}")
            return _error_response(e.status_code, e.message)

        response = self.check(domains)

        return {
            'statusCode': 200,
            'headers': {'Content-Type': 'application/json'},
            'body': json.dumps(response.to_body(), ensure_ascii=False)
        }

    @staticmethod
    def _get_path(event: Dict[str, Any]) -> str:
        http = (event.get('requestContext') or {}).get('http') or {}
        return event.get('path') or event.get('rawPath') or http.get('path') or ''

    @staticmethod
    def _get_body(event: Dict[str, Any]) -> bytes:
        body = event.get('body') or ''
        if not event.get('isBase64Encoded'):
            return body.encode('utf-8')

        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            raise RequestError(400, "Request body contains badly-formed JSON")


def _error_response(status_code: int, message: str) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'text/plain; charset=utf-8',
            'X-Content-Type-Options': 'nosniff'
        },
        'body': message + "\n"
    }


_service: Optional[CertExpiryService] = None


def get_service() -> CertExpiryService:
    """获取（在热启动之间复用的）检查服务实例"""
    global _service
    if _service is None:
        _service = CertExpiryService()
    return _service


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda函数入口点

    Args:
        event: API Gateway 代理事件
        context: Lambda运行时上下文

    Returns:
        dict: API Gateway 代理响应
    """
    try:
        service = get_service()
    except ConfigError as e:
        LoggerService().logger.error(f"服务配置无效: {e}")
        return _error_response(500, "Internal Server Error")

    try:
        return service.handle_event(event)
    except Exception as e:
        service.logger_service.logger.exception(f"处理请求时发生未预期的错误: {e}")
        return _error_response(500, "Internal Server Error")
