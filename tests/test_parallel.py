"""Tests for the bounded parallel scheduler."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conftest import SOURCE_TIME, FakeRunner, output_of, set_mtime

from minibuild import api
from minibuild.config.options import BuildOptions
from minibuild.engine.context import BuildContext
from minibuild.engine.sequential import SequentialExecutor
from minibuild.errors import GraphCycleError
from minibuild.graph import FileSource, Target, TargetSource, header, make_target
from minibuild.scheduler import ParallelScheduler

OBJECTS = "abcdefgh"


def _program():
    """main links eight independently compiled objects."""
    objects = []
    for name in OBJECTS:
        set_mtime(f"{name}.c", SOURCE_TIME)
        objects.append(make_target(f"{name}.o", ["cc", "-c"], FileSource(f"{name}.c")))
    main = make_target("main", ["cc"], *(TargetSource(obj) for obj in objects))
    return main, objects


def _scheduler(runner: FakeRunner, **options) -> ParallelScheduler:
    return ParallelScheduler(BuildContext(options=BuildOptions(**options), runner=runner))


def test_pool_never_exceeds_max_concurrency(in_tmp: Path, fake_runner: FakeRunner) -> None:
    main, objects = _program()

    result = _scheduler(fake_runner).build(main, 4)

    assert result.success
    assert fake_runner.peak == 4
    assert result.peak_concurrency == 4
    assert result.spawned == 9
    assert sorted(result.rebuilt) == sorted([f"{n}.o" for n in OBJECTS] + ["main"])
    assert main.is_built and all(obj.is_built for obj in objects)


def test_root_is_started_after_every_dependency_finished(
    in_tmp: Path, fake_runner: FakeRunner
) -> None:
    main, _ = _program()

    _scheduler(fake_runner).build(main, 4)

    outputs = [output_of(argv) for argv in fake_runner.commands]
    assert outputs[-1] == "main"
    finished = [output_of(argv) for argv in fake_runner.completed]
    assert finished[-1] == "main"
    assert fake_runner.commands[-1] == ["cc", "-o", "main", *(f"{n}.o" for n in OBJECTS)]


def test_root_process_is_awaited(in_tmp: Path, fake_runner: FakeRunner) -> None:
    set_mtime("toto.c", SOURCE_TIME)
    target = make_target("toto", ["cc"], FileSource("toto.c"))

    result = _scheduler(fake_runner).build(target, 2)

    assert result.success
    assert fake_runner.running == 0
    assert Path("toto").exists()


def test_concurrency_defaults_to_options(in_tmp: Path, fake_runner: FakeRunner) -> None:
    main, _ = _program()

    result = _scheduler(fake_runner, max_concurrency=3).build(main)

    assert result.peak_concurrency == 3


def test_invalid_concurrency_is_rejected(fake_runner: FakeRunner) -> None:
    with pytest.raises(ValueError):
        _scheduler(fake_runner).build(Target("x"), 0)


def test_up_to_date_graph_spawns_nothing(in_tmp: Path, fake_runner: FakeRunner) -> None:
    main, _ = _program()
    scheduler = _scheduler(fake_runner)
    scheduler.build(main, 4)
    spawned_before = len(fake_runner.commands)

    result = scheduler.build(main, 4)

    assert result.up_to_date
    assert len(fake_runner.commands) == spawned_before


def test_single_stale_source_rebuilds_only_its_chain(
    in_tmp: Path, fake_runner: FakeRunner
) -> None:
    main, _ = _program()
    scheduler = _scheduler(fake_runner)
    scheduler.build(main, 4)

    set_mtime("c.c", fake_runner.clock + 10)
    result = scheduler.build(main, 4)

    assert result.rebuilt == ["c.o", "main"]


def _two_level(prefix: str):
    set_mtime(f"{prefix}util.h", SOURCE_TIME)
    leaves = []
    for name in "xyz":
        set_mtime(f"{prefix}{name}.c", SOURCE_TIME)
        leaves.append(
            make_target(
                f"{prefix}{name}.o",
                ["cc", "-c"],
                FileSource(f"{prefix}{name}.c"),
                header(f"{prefix}util.h"),
            )
        )
    lib = make_target(f"{prefix}lib.a", ["ar"], *(TargetSource(leaf) for leaf in leaves[:2]))
    return make_target(f"{prefix}app", ["cc"], TargetSource(lib), TargetSource(leaves[2]))


def test_parallel_and_sequential_agree(in_tmp: Path) -> None:
    seq_root = _two_level("s_")
    par_root = _two_level("p_")
    seq_runner, par_runner = FakeRunner(), FakeRunner()
    seq = SequentialExecutor(BuildContext(runner=seq_runner))
    par = ParallelScheduler(BuildContext(runner=par_runner))

    first_seq, first_par = seq.build(seq_root), par.build(par_root, 3)
    assert {n[2:] for n in first_seq.rebuilt} == {n[2:] for n in first_par.rebuilt}

    # Only y.o and what depends on it must be rebuilt.
    set_mtime("s_y.c", seq_runner.clock + 100)
    set_mtime("p_y.c", par_runner.clock + 100)
    second_seq, second_par = seq.build(seq_root), par.build(par_root, 3)

    assert {n[2:] for n in second_seq.rebuilt} == {"y.o", "lib.a", "app"}
    assert {n[2:] for n in second_par.rebuilt} == {"y.o", "lib.a", "app"}


def test_failure_stops_admission_and_drains_running(
    in_tmp: Path, fake_runner: FakeRunner
) -> None:
    main, _ = _program()
    fake_runner.fail["h.o"] = 3

    result = _scheduler(fake_runner).build(main, 4)

    assert result.status == 3
    assert result.failed == "h.o"
    assert fake_runner.running == 0
    started = [output_of(argv) for argv in fake_runner.commands]
    # Pre-order seeding puts the last declared object at the head.
    assert started == ["h.o", "g.o", "f.o", "e.o"]
    assert "main" not in started
    assert sorted(result.rebuilt) == ["e.o", "f.o", "g.o"]


def test_spawn_failure_is_a_build_failure(in_tmp: Path, fake_runner: FakeRunner) -> None:
    main, _ = _program()
    fake_runner.spawn_fail.add("b.o")

    result = _scheduler(fake_runner).build(main, 4)

    assert result.status == 127
    assert result.failed == "b.o"
    assert fake_runner.running == 0
    assert "main" not in [output_of(argv) for argv in fake_runner.commands]


def _errors(caplog: pytest.LogCaptureFixture):
    return [r.getMessage() for r in caplog.records if r.levelno >= logging.ERROR]


def test_failed_build_logs_one_error_line(
    in_tmp: Path, fake_runner: FakeRunner, caplog: pytest.LogCaptureFixture
) -> None:
    main, _ = _program()
    fake_runner.fail["h.o"] = 3
    # Still running when h.o fails; it is drained and fails as well.
    fake_runner.fail["g.o"] = 2

    with caplog.at_level(logging.DEBUG, logger="minibuild"):
        result = _scheduler(fake_runner).build(main, 4)

    assert result.status == 3
    assert _errors(caplog) == ["Could not build target `h.o' (exit status 3)"]
    assert "Could not build target `g.o' (exit status 2)" in caplog.text


def test_spawn_failure_logs_one_error_line(
    in_tmp: Path, fake_runner: FakeRunner, caplog: pytest.LogCaptureFixture
) -> None:
    main, _ = _program()
    fake_runner.spawn_fail.add("b.o")

    with caplog.at_level(logging.DEBUG, logger="minibuild"):
        _scheduler(fake_runner).build(main, 4)

    assert _errors(caplog) == ["Could not build target `b.o' (exit status 127)"]


def test_missing_source_in_strict_mode_logs_one_error_line(
    in_tmp: Path, fake_runner: FakeRunner, caplog: pytest.LogCaptureFixture
) -> None:
    obj = make_target("a.o", ["cc", "-c"], FileSource("a.c"))

    with caplog.at_level(logging.DEBUG, logger="minibuild"):
        result = _scheduler(fake_runner, strict_sources=True).build(obj, 2)

    assert result.status == 1
    assert result.failed == "a.o"
    assert _errors(caplog) == ["Source `a.c' of target `a.o' does not exist"]
    assert fake_runner.commands == []


def test_cycle_is_rejected_up_front(fake_runner: FakeRunner) -> None:
    a, b = Target("a", ["cc"]), Target("b", ["cc"])
    a.depends_on(b)
    b.depends_on(a)

    with pytest.raises(GraphCycleError):
        _scheduler(fake_runner).build(a, 2)
    assert fake_runner.commands == []


def test_api_build_picks_executor_from_concurrency(
    in_tmp: Path, fake_runner: FakeRunner
) -> None:
    main, _ = _program()
    context = api.create_context(options=BuildOptions(max_concurrency=2), runner=fake_runner)

    result = api.build(main, context)

    assert result.success
    assert fake_runner.peak == 2

    sequential = FakeRunner()
    set_mtime("a.c", fake_runner.clock + 10)
    result = api.build(main, api.create_context(runner=sequential))
    assert result.rebuilt == ["a.o", "main"]
    assert sequential.peak == 0
