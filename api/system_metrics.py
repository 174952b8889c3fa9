"""
Host and process resource metrics.

Memory figures for the liveness payload, plus an optional background task
that logs system and process memory/CPU at a fixed interval (enabled with
``ENABLE_METRICS``).
"""
import asyncio
import logging
from typing import Any, Dict

import psutil

logger = logging.getLogger("rossby_vis.metrics")

_process = psutil.Process()


def memory_snapshot() -> Dict[str, int]:
    """Host memory in KiB: total, used and available."""
    mem = psutil.virtual_memory()
    return {
        "total_kb": mem.total // 1024,
        "used_kb": mem.used // 1024,
        "available_kb": mem.available // 1024,
    }


def system_metrics() -> Dict[str, Any]:
    mem = psutil.virtual_memory()
    return {
        "system_memory_total": mem.total,
        "system_memory_used": mem.used,
        "system_memory_usage_percent": round(mem.percent, 2),
        # Non-blocking: CPU use since the previous call
        "system_cpu_usage_percent": psutil.cpu_percent(interval=None),
    }


def process_metrics() -> Dict[str, Any]:
    with _process.oneshot():
        info = _process.memory_info()
        return {
            "process_pid": _process.pid,
            "process_memory": info.rss,
            "process_virtual_memory": info.vms,
            "process_cpu_usage": _process.cpu_percent(interval=None),
        }


def log_system_metrics() -> None:
    """Log one system sample and one process sample."""
    system = system_metrics()
    logger.info(
        "System metrics " + " ".join(f"{k}={v}" for k, v in system.items())
    )
    process = process_metrics()
    logger.info(
        "Process metrics " + " ".join(f"{k}={v}" for k, v in process.items())
    )


async def run_metrics_logger(interval_seconds: float) -> None:
    """Log metrics every ``interval_seconds`` until cancelled."""
    logger.info(f"System metrics logging every {interval_seconds}s")
    while True:
        try:
            log_system_metrics()
        except psutil.Error as e:
            logger.warning(f"Could not collect system metrics: {e}")
        await asyncio.sleep(interval_seconds)
