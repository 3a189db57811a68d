"""Tests for orchestrator.py module.

Tests the build/verify/push flow against a recording fake engine.
"""

from pathlib import Path

import pytest
from rich.console import Console

from hf_model_image.config import Settings
from hf_model_image.engine import ContainerEngine, EngineCommandError
from hf_model_image.orchestrator import (
    SanityCheckError,
    build_model_image,
    is_affirmative,
    verify_model_folders,
)
from hf_model_image.types import RunOutcome

IMAGE = "quay.io/org/models:v1"


class FakeEngine(ContainerEngine):
    """Engine double recording every call."""

    def __init__(
        self,
        missing: set[str] | None = None,
        build_error: EngineCommandError | None = None,
        push_error: EngineCommandError | None = None,
    ) -> None:
        self.missing = missing or set()
        self.build_error = build_error
        self.push_error = push_error
        self.calls: list[tuple[str, ...]] = []
        self.descriptor_seen: str | None = None

    def build(self, image: str, descriptor: Path, context_dir: Path) -> None:
        self.calls.append(("build", image))
        self.descriptor_seen = descriptor.read_text()
        if self.build_error is not None:
            raise self.build_error

    def run_list(self, image: str, path: str) -> bool:
        self.calls.append(("run_list", image, path))
        return path not in self.missing

    def push(self, image: str) -> None:
        self.calls.append(("push", image))
        if self.push_error is not None:
            raise self.push_error

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]


def _answers(*answers: bool):
    """Confirm callback answering in order."""
    remaining = list(answers)
    questions: list[str] = []

    def confirm(question: str) -> bool:
        questions.append(question)
        return remaining.pop(0)

    confirm.questions = questions  # type: ignore[attr-defined]
    return confirm


@pytest.fixture
def console() -> Console:
    """Console writing into memory."""
    return Console(record=True, width=200, force_terminal=False)


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings()


def _run(engine, confirm, tmp_path, settings, console, models=("org/name",)):
    return build_model_image(
        list(models),
        IMAGE,
        engine,
        confirm=confirm,
        work_dir=tmp_path,
        settings=settings,
        console=console,
    )


class TestIsAffirmative:
    """Tests for is_affirmative function."""

    @pytest.mark.parametrize("answer", ["y", "Y", " y ", "y\n"])
    def test_yes(self, answer):
        """Should accept a single y in either case."""
        assert is_affirmative(answer) is True

    @pytest.mark.parametrize("answer", ["", "n", "N", "yes", "yy", "x"])
    def test_no(self, answer):
        """Should reject everything else."""
        assert is_affirmative(answer) is False


class TestVerifyModelFolders:
    """Tests for verify_model_folders function."""

    def test_all_found(self):
        """Should return folders in model order."""
        engine = FakeEngine()
        found = verify_model_folders(
            engine, IMAGE, ["org/a", "org/b"], "/data1/llms"
        )
        assert found == ["a", "b"]
        assert engine.calls == [
            ("run_list", IMAGE, "/data1/llms/a"),
            ("run_list", IMAGE, "/data1/llms/b"),
        ]

    def test_stops_at_first_missing(self):
        """Should raise naming the missing model and stop checking."""
        engine = FakeEngine(missing={"/data1/llms/b"})
        with pytest.raises(SanityCheckError) as exc_info:
            verify_model_folders(
                engine, IMAGE, ["org/a", "org/b", "org/c"], "/data1/llms/"
            )

        error = exc_info.value
        assert error.model == "org/b"
        assert error.folder == "b"
        assert error.image == IMAGE
        assert error.code == "sanity_check_failed"
        assert "org/b" in str(error)
        assert len(engine.calls) == 2


class TestBuildModelImage:
    """Tests for build_model_image function."""

    def test_full_run_pushes(self, tmp_path, settings, console):
        """Should build, verify and push when both prompts are accepted."""
        engine = FakeEngine()
        report = _run(
            engine, _answers(True, True), tmp_path, settings, console,
            models=("org/a", "org/b"),
        )

        assert report.outcome == RunOutcome.PUSHED
        assert report.verified_folders == ["a", "b"]
        assert engine.ops() == ["build", "run_list", "run_list", "push"]
        assert not (tmp_path / "Dockerfile").exists()
        assert "Push complete." in console.export_text()

    def test_descriptor_present_during_build(self, tmp_path, settings, console):
        """Engine should see the rendered descriptor."""
        engine = FakeEngine()
        _run(engine, _answers(True, False), tmp_path, settings, console)

        assert engine.descriptor_seen is not None
        assert 'LABEL "huggingface.model.org.name"="org/name"' in (
            engine.descriptor_seen
        )

    def test_initial_decline_aborts(self, tmp_path, settings, console):
        """Should stop before writing or building anything."""
        engine = FakeEngine()
        report = _run(engine, _answers(False), tmp_path, settings, console)

        assert report.outcome == RunOutcome.ABORTED
        assert engine.calls == []
        assert not (tmp_path / "Dockerfile").exists()
        assert "Aborted by user." in console.export_text()

    def test_push_declined(self, tmp_path, settings, console):
        """Should never push and leave the image local."""
        engine = FakeEngine()
        confirm = _answers(True, False)
        report = _run(engine, confirm, tmp_path, settings, console)

        assert report.outcome == RunOutcome.PUSH_DECLINED
        assert "push" not in engine.ops()
        assert not (tmp_path / "Dockerfile").exists()
        output = console.export_text()
        assert "Push aborted by user." in output
        assert f"The local image '{IMAGE}' is available for inspection." in output
        assert IMAGE in confirm.questions[1]

    def test_sanity_failure_removes_descriptor(self, tmp_path, settings, console):
        """Should raise naming the model and clean up the descriptor."""
        engine = FakeEngine(missing={"/data1/llms/missing"})
        with pytest.raises(SanityCheckError) as exc_info:
            _run(
                engine, _answers(True, True), tmp_path, settings, console,
                models=("org/present", "org/missing"),
            )

        assert exc_info.value.model == "org/missing"
        assert "push" not in engine.ops()
        assert not (tmp_path / "Dockerfile").exists()
        assert "Model folder 'present' found inside the image." in (
            console.export_text()
        )

    def test_build_failure_propagates(self, tmp_path, settings, console):
        """Should stop at the build and remove the descriptor."""
        engine = FakeEngine(build_error=EngineCommandError("boom", exit_code=125))
        with pytest.raises(EngineCommandError) as exc_info:
            _run(engine, _answers(True, True), tmp_path, settings, console)

        assert exc_info.value.exit_code == 125
        assert engine.ops() == ["build"]
        assert not (tmp_path / "Dockerfile").exists()

    def test_push_failure_propagates(self, tmp_path, settings, console):
        """Should surface push failures and remove the descriptor."""
        engine = FakeEngine(push_error=EngineCommandError("denied", exit_code=2))
        with pytest.raises(EngineCommandError):
            _run(engine, _answers(True, True), tmp_path, settings, console)

        assert not (tmp_path / "Dockerfile").exists()

    def test_interrupt_removes_descriptor(self, tmp_path, settings, console):
        """Should remove the descriptor when the push prompt is interrupted."""
        engine = FakeEngine()
        answers = iter([True])

        def confirm(question: str) -> bool:
            try:
                return next(answers)
            except StopIteration:
                raise KeyboardInterrupt from None

        with pytest.raises(KeyboardInterrupt):
            _run(engine, confirm, tmp_path, settings, console)

        assert not (tmp_path / "Dockerfile").exists()

    def test_leftover_descriptor_overwritten(self, tmp_path, settings, console):
        """Should replace and then remove a stale descriptor."""
        (tmp_path / "Dockerfile").write_text("stale")
        engine = FakeEngine()
        _run(engine, _answers(True, False), tmp_path, settings, console)

        assert "stale" not in (engine.descriptor_seen or "")
        assert not (tmp_path / "Dockerfile").exists()

    def test_custom_descriptor_name(self, tmp_path, console):
        """Should write the descriptor under the configured name."""
        settings = Settings(descriptor_name="Containerfile.models")
        engine = FakeEngine()
        _run(engine, _answers(True, False), tmp_path, settings, console)

        assert engine.descriptor_seen is not None
        assert not (tmp_path / "Containerfile.models").exists()

    def test_configuration_shown(self, tmp_path, settings, console):
        """Should list every model and the image before asking."""
        engine = FakeEngine()
        _run(
            engine, _answers(False), tmp_path, settings, console,
            models=("org/a", "org/b"),
        )

        output = console.export_text()
        assert "  - org/a" in output
        assert "  - org/b" in output
        assert f"Full Image Name:      {IMAGE}" in output

    def test_default_console_keeps_emoji_codes(self, tmp_path, settings, capsys):
        """The fallback console should not turn :codes: into emoji."""
        engine = FakeEngine()
        build_model_image(
            ["org/model:fire:"],
            IMAGE,
            engine,
            confirm=_answers(False),
            work_dir=tmp_path,
            settings=settings,
        )

        output = capsys.readouterr().out
        assert "org/model:fire:" in output
        assert "\U0001f525" not in output
