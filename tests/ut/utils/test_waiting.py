"""poll_until 单元测试（注入时钟，不真实等待）"""

from __future__ import annotations

from deployer.utils.waiting import poll_until


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestPollUntil:
    def test_immediate_success(self) -> None:
        clock = _Clock()
        assert poll_until(lambda: True, timeout=10, sleep=clock.sleep, clock=clock)
        assert clock.sleeps == []

    def test_succeeds_after_retries(self) -> None:
        clock = _Clock()
        results = iter([False, False, True])
        ok = poll_until(lambda: next(results), timeout=30, interval=5,
                        sleep=clock.sleep, clock=clock)
        assert ok
        assert clock.sleeps == [5, 5]

    def test_times_out(self) -> None:
        clock = _Clock()
        calls = []

        def check() -> bool:
            calls.append(1)
            return False

        ok = poll_until(check, timeout=12, interval=5, sleep=clock.sleep, clock=clock)
        assert not ok
        # 0s, 5s, 10s, 12s 各检查一次
        assert len(calls) == 4
        assert sum(clock.sleeps) == 12

    def test_zero_timeout_checks_once(self) -> None:
        clock = _Clock()
        calls = []
        assert not poll_until(lambda: calls.append(1) or False, timeout=0,
                              sleep=clock.sleep, clock=clock)
        assert len(calls) == 1
