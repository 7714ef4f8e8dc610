import unittest

from chessarena.errors import (
    EngineContractError,
    MissingCredentialError,
    ParseError,
    TransportError,
)
from chessarena.retry import RetryController, describe_failure


class _Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class _Flaky:
    """Fails `failures` times, then returns `value`."""

    def __init__(self, failures: int, value: str = "ok", exc_type=TransportError) -> None:
        self.failures = failures
        self.value = value
        self.exc_type = exc_type
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_type("groq", f"failure {self.calls}")
        return self.value


class RetryControllerTests(unittest.IsolatedAsyncioTestCase):
    async def test_success_on_first_attempt_does_not_sleep(self) -> None:
        sleeps = _Sleeps()
        retry = RetryController(3, sleep=sleeps)
        self.assertEqual(await retry.execute(_Flaky(0)), "ok")
        self.assertEqual(sleeps.delays, [])

    async def test_backoff_doubles_between_attempts(self) -> None:
        sleeps = _Sleeps()
        op = _Flaky(3)
        retry = RetryController(4, base_delay=1.0, sleep=sleeps)

        self.assertEqual(await retry.execute(op), "ok")
        self.assertEqual(op.calls, 4)
        self.assertEqual(sleeps.delays, [1.0, 2.0, 4.0])
        self.assertEqual(retry.last_session.attempts, 4)
        self.assertEqual(retry.last_session.total_delay, 7.0)

    async def test_exhaustion_raises_last_error_with_layer_note(self) -> None:
        sleeps = _Sleeps()
        op = _Flaky(5, exc_type=ParseError)
        retry = RetryController(3, layer="provider", sleep=sleeps)

        with self.assertRaises(ParseError) as ctx:
            await retry.execute(op)

        self.assertIn("failure 3", str(ctx.exception))
        self.assertEqual(ctx.exception.__notes__, ["provider attempt 3/3"])
        self.assertEqual(op.calls, 3)
        self.assertEqual(sleeps.delays, [1.0, 2.0])

    async def test_configuration_errors_are_not_retried(self) -> None:
        sleeps = _Sleeps()
        calls = 0

        async def op() -> str:
            nonlocal calls
            calls += 1
            raise MissingCredentialError("openai")

        with self.assertRaises(MissingCredentialError):
            await RetryController(3, sleep=sleeps).execute(op)
        self.assertEqual(calls, 1)
        self.assertEqual(sleeps.delays, [])

    async def test_engine_contract_errors_are_not_retried(self) -> None:
        async def op() -> str:
            raise EngineContractError("board disagrees")

        with self.assertRaises(EngineContractError):
            await RetryController(3, sleep=_Sleeps()).execute(op)

    async def test_per_call_attempt_override(self) -> None:
        op = _Flaky(10)
        with self.assertRaises(TransportError):
            await RetryController(5, sleep=_Sleeps()).execute(op, max_attempts=2)
        self.assertEqual(op.calls, 2)

    async def test_zero_base_delay_never_sleeps(self) -> None:
        sleeps = _Sleeps()
        await RetryController(3, base_delay=0.0, sleep=sleeps).execute(_Flaky(2))
        self.assertEqual(sleeps.delays, [])

    def test_invalid_attempt_count(self) -> None:
        with self.assertRaises(ValueError):
            RetryController(0)

    async def test_describe_failure_lists_layers_outermost_first(self) -> None:
        inner = RetryController(2, layer="provider", sleep=_Sleeps())
        outer = RetryController(2, base_delay=0.0, layer="orchestrator", sleep=_Sleeps())
        op = _Flaky(100)

        with self.assertRaises(TransportError) as ctx:
            await outer.execute(lambda: inner.execute(op))

        text = describe_failure(ctx.exception)
        self.assertTrue(text.startswith("orchestrator attempt 2/2 <- provider attempt 2/2"))
        self.assertIn("TransportError", text)
        self.assertEqual(op.calls, 4)


if __name__ == "__main__":
    unittest.main()
