"""
请求解析服务
"""
import json
from typing import List, Mapping, Optional, Union

MAX_BODY_BYTES = 1048576
DOMAINS_FIELD = 'Domains'


class RequestError(Exception):
    """请求无效，携带应返回的HTTP状态码"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class RequestParser:
    """将请求体解析为域名列表"""

    def __init__(self, max_body_bytes: int = MAX_BODY_BYTES):
        """
        初始化请求解析器

        Args:
            max_body_bytes: 请求体最大字节数
        """
        self.max_body_bytes = max_body_bytes

    def check_content_type(self, headers: Optional[Mapping[str, str]]):
        """
        检查 Content-Type，未提供时视为 JSON

        Raises:
            RequestError: Content-Type 不是 application/json
        """
        content_type = self._get_header(headers or {}, 'Content-Type')
        if not content_type:
            return

        media_type = content_type.split(';', 1)[0].strip().lower()
        if media_type != 'application/json':
            raise RequestError(415, "Content-Type header is not application/json")

    def parse(self, body: Union[str, bytes, None], headers: Optional[Mapping[str, str]] = None) -> List[str]:
        """
        解析请求体

        Args:
            body: 原始请求体
            headers: 请求头

        Returns:
            List[str]: 域名列表，保持请求中的顺序

        Raises:
            RequestError: 请求无效
        """
        self.check_content_type(headers)

        if body is None:
            body = b''
        if isinstance(body, str):
            body = body.encode('utf-8')

        if len(body) > self.max_body_bytes:
            raise RequestError(413, f"Request body must not be larger than {self._format_size()}")

        if not body.strip():
            raise RequestError(400, "Request body must not be empty")

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise RequestError(400, f"Request body contains badly-formed JSON (at position {e.pos})")
        except UnicodeDecodeError:
            raise RequestError(400, "Request body contains badly-formed JSON")

        return self._extract_domains(payload)

    def _extract_domains(self, payload) -> List[str]:
        """
        从已解码的JSON中读取域名列表

        字段名大小写不敏感，不允许出现其他字段。
        """
        if payload is None:
            return []

        if not isinstance(payload, dict):
            raise RequestError(400, "Request body must be a JSON object")

        domains = None
        for key, value in payload.items():
            if key.lower() != DOMAINS_FIELD.lower():
                raise RequestError(400, f"Request body contains unknown field {json.dumps(key)}")
            domains = value

        if domains is None:
            return []

        if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
            raise RequestError(400, f"Request body contains an invalid value for the \"{DOMAINS_FIELD}\" field")

        return domains

    def _format_size(self) -> str:
        if self.max_body_bytes % 1048576 == 0:
            return f"{self.max_body_bytes // 1048576}MB"
        if self.max_body_bytes % 1024 == 0:
            return f"{self.max_body_bytes // 1024}KB"
        return f"{self.max_body_bytes} bytes"

    @staticmethod
    def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
        # API Gateway 不保证请求头的大小写
        for key, value in headers.items():
            if key.lower() == name.lower():
                return value
        return None
