"""
分组并发批量检查服务
"""
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from ..interfaces import BatchRunnerInterface, ProbeInterface
from ..models import ProbeResult
from .logger import LoggerService
from .result_map import ConcurrentResultMap

DEFAULT_CONCURRENCY = 10


class BatchRunner(BatchRunnerInterface):
    """
    按固定大小分组检查域名

    同一组内的域名并发探测，组与组之间顺序执行：
    上一组全部探测结束后才开始下一组，因此同时进行的握手数不超过 concurrency。
    """

    def __init__(self, probe: ProbeInterface, concurrency: int = DEFAULT_CONCURRENCY,
                 logger_service: Optional[LoggerService] = None):
        """
        初始化批量检查器

        Args:
            probe: 证书探测器
            concurrency: 每组域名数量，即最大并发探测数
            logger_service: 日志服务
        """
        if concurrency < 1:
            raise ValueError(f"concurrency 必须大于0，当前值: {concurrency}")

        self.probe = probe
        self.concurrency = concurrency
        self.logger_service = logger_service
        self.logger = logging.getLogger(__name__)

    def split_groups(self, domains: List[str]) -> List[List[str]]:
        """
        将域名列表切分为连续的分组

        Args:
            domains: 域名列表

        Returns:
            List[List[str]]: 分组，最后一组可能不足 concurrency 个
        """
        return [domains[i:i + self.concurrency] for i in range(0, len(domains), self.concurrency)]

    def run(self, domains: List[str]) -> Dict[str, ProbeResult]:
        """
        检查全部域名

        Args:
            domains: 域名列表，允许重复

        Returns:
            Dict[str, ProbeResult]: 每个不同域名一条结果
        """
        results = ConcurrentResultMap()
        groups = self.split_groups(domains)

        if not groups:
            return results.snapshot()

        if self.logger_service:
            self.logger_service.log_batch_start(len(domains))

        with ThreadPoolExecutor(max_workers=self.concurrency,
                                thread_name_prefix='tls-probe') as executor:
            for group_num, group in enumerate(groups, 1):
                if self.logger_service:
                    self.logger_service.log_group(group_num, len(groups), len(group))

                futures = [executor.submit(self._probe_domain, domain, results) for domain in group]
                # 等待本组全部完成后再开始下一组
                wait(futures)

        if self.logger_service:
            self.logger_service.log_batch_end()

        return results.snapshot()

    def _probe_domain(self, domain: str, results: ConcurrentResultMap):
        """探测单个域名并写入结果"""
        try:
            result = self.probe.check(domain)
        except Exception as e:
            # 探测器不应抛出异常，若抛出仍记为该域名的错误结果
            if self.logger_service:
                self.logger_service.log_error(domain, e)
            else:
                self.logger.error(f"域名 {domain} 探测时发生未处理的错误: {e}")
            result = ProbeResult.error(domain, f"{type(e).__name__}: {e}")

        results.insert(domain, result)

        if self.logger_service:
            self.logger_service.log_probe_result(domain, result)
