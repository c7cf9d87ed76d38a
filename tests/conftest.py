"""Shared test fixtures."""

import pytest


@pytest.fixture
def scripted_spawner():
    """A repeatable scripted spawner recording every spawn.

    Queue ExecResults (or OSErrors) on ``responses``; when empty a run
    exits with status 0 and captures empty output for each requested stream.
    """
    from mapped_command.mock import MockResult, MockSpawn
    from mapped_command.spawn import ExecResult

    calls = []
    responses = []

    def fake_spawn(options, capture_stdout, capture_stderr):
        calls.append((options, capture_stdout, capture_stderr))
        if responses:
            return MockResult(responses.pop(0))
        return MockResult(
            ExecResult(
                stdout=b"" if capture_stdout else None,
                stderr=b"" if capture_stderr else None,
            )
        )

    spawner = MockSpawn(fake_spawn)
    return type(
        "ScriptedSpawner", (), {"spawner": spawner, "calls": calls, "responses": responses}
    )()
