"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import Dict, List
from .models import ProbeResult


class ProbeInterface(ABC):
    """证书探测器接口"""
    
    @abstractmethod
    def check(self, domain: str) -> ProbeResult:
        """探测单个域名的证书，不抛出异常"""
        pass


class BatchRunnerInterface(ABC):
    """批量检查器接口"""
    
    @abstractmethod
    def run(self, domains: List[str]) -> Dict[str, ProbeResult]:
        """检查全部域名，所有探测结束后返回"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""
    
    @abstractmethod
    def log_batch_start(self, domain_count: int):
        """记录批量检查开始"""
        pass
    
    @abstractmethod
    def log_probe_result(self, domain: str, result: ProbeResult):
        """记录单个域名的探测结果"""
        pass
    
    @abstractmethod
    def log_error(self, domain: str, error: Exception):
        """记录错误信息"""
        pass
