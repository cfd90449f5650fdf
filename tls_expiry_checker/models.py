"""
数据模型定义
"""
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ProbeResult:
    """单个域名的探测结果（成功为剩余天数，失败为错误描述）"""
    domain: str
    days_until_expiry: Optional[int] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, domain: str, days: int) -> "ProbeResult":
        return cls(domain=domain, days_until_expiry=days)

    @classmethod
    def error(cls, domain: str, description: str) -> "ProbeResult":
        return cls(domain=domain, error_message=description)

    @property
    def is_ok(self) -> bool:
        """是否成功读取到证书过期时间"""
        return self.error_message is None

    @property
    def is_expired(self) -> bool:
        """判断证书是否已过期"""
        return self.is_ok and self.days_until_expiry < 0

    def to_wire(self) -> str:
        """
        转换为响应中使用的字符串格式
        
        Returns:
            str: 成功时为十进制天数，失败时为错误描述
        """
        if self.is_ok:
            return str(self.days_until_expiry)
        return self.error_message


@dataclass
class CheckResponse:
    """一次批量检查的响应"""
    results: Dict[str, ProbeResult]
    request_time: str
    execution_time: float = 0.0

    @property
    def successful_checks(self) -> int:
        return len([r for r in self.results.values() if r.is_ok])

    @property
    def failed_checks(self) -> int:
        return len(self.results) - self.successful_checks

    def to_body(self) -> Dict[str, object]:
        """
        构建响应体
        
        Returns:
            Dict[str, object]: {"Data": {...}, "RequestTime": "..."}
        """
        return {
            'Data': {domain: result.to_wire() for domain, result in self.results.items()},
            'RequestTime': self.request_time
        }
