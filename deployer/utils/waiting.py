"""有界轮询工具

组件安装后等待初始化完成时使用：按固定间隔重复检查，
直到条件满足或超时，不存在无限重试。
"""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


def poll_until(
    check: Callable[[], bool],
    *,
    timeout: float,
    interval: float = 5.0,
    label: str = "",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """轮询 check() 直到返回 True 或超过 timeout 秒

    至少检查一次；timeout <= 0 时只检查一次。
    sleep / clock 可注入，测试时无需真实等待。

    Returns:
        条件是否在超时前满足
    """
    deadline = clock() + max(timeout, 0)
    attempt = 0
    while True:
        attempt += 1
        if check():
            if attempt > 1:
                logger.debug("%s 第 %d 次检查通过", label or "轮询", attempt)
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            logger.warning("%s 等待超时（%.0f秒，共检查 %d 次）", label or "轮询", timeout, attempt)
            return False
        sleep(min(interval, remaining))
