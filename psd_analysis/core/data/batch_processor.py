# -*- coding: utf-8 -*-
"""
Batch processing utilities for RunPipeline.

Runs share nothing, so they are analysed on a thread pool. Run-level
summary lines are appended afterwards, serially and in input order.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
import logging
import time
import traceback
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from tqdm import tqdm

from psd_analysis.core.config.run_config import RunConfig
from psd_analysis.core.data.export import SummarySinkWriter
from psd_analysis.core.exceptions import ConfigurationError, ResourceNotFoundError
from psd_analysis.core.foundation.utils import exporter

if TYPE_CHECKING:
    from psd_analysis.core.pipeline import RunPipeline, RunResult

logger = logging.getLogger(__name__)
export, __all__ = exporter()

STATUS_SUCCESS = export("success", name="STATUS_SUCCESS")
STATUS_SKIPPED = export("skipped", name="STATUS_SKIPPED")
STATUS_FAILED = export("failed", name="STATUS_FAILED")


def _build_error_info(exc: Exception) -> Dict[str, str]:
    return {
        "type": type(exc).__name__,
        "message": str(exc),
        "traceback": traceback.format_exc(),
    }


@export
@dataclass
class BatchResult:
    """批处理结果

    Attributes:
        results: run_id -> RunResult（仅成功的运行）
        errors: run_id -> 错误信息字典（type / message / traceback）
        meta: run_id -> {"status", "elapsed"}
        ordered_run_ids: 输入顺序的运行 ID
    """

    results: Dict[str, "RunResult"] = field(default_factory=dict)
    errors: Dict[str, Dict[str, str]] = field(default_factory=dict)
    meta: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    ordered_run_ids: List[str] = field(default_factory=list)

    def run_ids_with_status(self, status: str) -> List[str]:
        return [run_id for run_id in self.ordered_run_ids if self.meta[run_id]["status"] == status]

    @property
    def failed(self) -> List[str]:
        return self.run_ids_with_status(STATUS_FAILED)

    @property
    def skipped(self) -> List[str]:
        return self.run_ids_with_status(STATUS_SKIPPED)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped


def _run_single_task(
    config: RunConfig,
    pipeline_factory: Callable[[RunConfig], "RunPipeline"],
):
    start_time = time.time()
    try:
        result = pipeline_factory(config).run()
        return config.run_id, result, None, {"status": STATUS_SUCCESS, "elapsed": time.time() - start_time}
    except ResourceNotFoundError as exc:
        return config.run_id, None, _build_error_info(exc), {
            "status": STATUS_SKIPPED,
            "elapsed": time.time() - start_time,
        }
    except Exception as exc:
        return config.run_id, None, _build_error_info(exc), {
            "status": STATUS_FAILED,
            "elapsed": time.time() - start_time,
        }


@export
class BatchProcessor:
    """
    批量处理器

    并行分析多个运行，每个运行独立构建自己的 Context。

    使用示例:
        processor = BatchProcessor(max_workers=4)
        batch = processor.process_runs(load_run_list("File Details.txt"))
        batch.failed
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        pipeline_factory: Optional[Callable[[RunConfig], "RunPipeline"]] = None,
        show_progress: bool = True,
        write_summaries: bool = True,
    ):
        """
        初始化批量处理器

        Args:
            max_workers: 最大并行线程数（None 由 ThreadPoolExecutor 决定，1 为串行）
            pipeline_factory: 为每个 RunConfig 创建 RunPipeline 的工厂函数（默认 RunPipeline）
            show_progress: 是否显示 tqdm 进度条
            write_summaries: 是否在全部运行结束后追加运行级汇总行
        """
        if pipeline_factory is None:
            from psd_analysis.core.pipeline import RunPipeline

            pipeline_factory = RunPipeline
        self.max_workers = max_workers
        self.pipeline_factory = pipeline_factory
        self.show_progress = show_progress
        self.write_summaries = write_summaries
        self.logger = logging.getLogger(self.__class__.__name__)

    def process_runs(self, configs: Sequence[RunConfig]) -> BatchResult:
        """
        批量处理多个运行

        缺失输入文件的运行被跳过（skipped），其它异常使该运行失败（failed）；
        两者都不影响其余运行。

        Returns:
            BatchResult
        """
        batch = BatchResult(ordered_run_ids=[cfg.run_id for cfg in configs])
        if len(set(batch.ordered_run_ids)) != len(batch.ordered_run_ids):
            raise ConfigurationError("Run list contains duplicate run ids")

        pbar = tqdm(total=len(configs), desc="Processing runs", unit="run", disable=not self.show_progress)
        try:
            if self.max_workers == 1:
                for cfg in configs:
                    self._collect(batch, _run_single_task(cfg, self.pipeline_factory))
                    pbar.update(1)
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    futures = [executor.submit(_run_single_task, cfg, self.pipeline_factory) for cfg in configs]
                    for future in as_completed(futures):
                        self._collect(batch, future.result())
                        pbar.update(1)
        finally:
            pbar.close()

        if self.write_summaries:
            self._write_summaries(batch)

        self.logger.info(
            "Processed %d runs: %d succeeded, %d skipped, %d failed",
            len(configs), len(batch.results), len(batch.skipped), len(batch.failed),
        )
        return batch

    def _collect(self, batch: BatchResult, outcome) -> None:
        run_id, result, error_info, meta = outcome
        batch.meta[run_id] = meta
        if result is not None:
            batch.results[run_id] = result
            return
        batch.errors[run_id] = error_info
        if meta["status"] == STATUS_SKIPPED:
            self.logger.error("Skipping run %s: %s", run_id, error_info["message"])
        else:
            self.logger.error("Run %s failed: %s: %s", run_id, error_info["type"], error_info["message"])
            self.logger.debug("Traceback for run %s:\n%s", run_id, error_info["traceback"])

    def _write_summaries(self, batch: BatchResult) -> None:
        for run_id in batch.ordered_run_ids:
            result = batch.results.get(run_id)
            if result is None:
                continue
            SummarySinkWriter(result.config.destination).append(result.summary)
