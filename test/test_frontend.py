"""
Tests for the command-line frontend and a full run against fake tooling.
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeCommunicator, quiet_log
from benchdeploy.config import BenchDeployConfig
from benchdeploy.errors import NoViableResult, PromotionFailed
from benchdeploy.frontend import (
    EXIT_FAILED,
    EXIT_OK,
    EXIT_USAGE,
    create_argument_parser,
    main,
    run_bench_deploy,
)
from benchdeploy.models.instance import BenchmarkResult, InstanceConfig
from benchdeploy.models.outcome import GlobalBest


SMALL = InstanceConfig(cores=2, memory_mb=8192, hourly_cost=0.066)
LARGE = InstanceConfig(cores=8, memory_mb=12288, hourly_cost=0.196)


def fast_config(**overrides) -> BenchDeployConfig:
    values = dict(
        image="gcr.io/demo/app:1",
        iterations=1,
        workers=2,
        warmup_seconds=0,
        sample_interval=0,
        resolve_backoff=0,
        candidates=[SMALL, LARGE],
    )
    values.update(overrides)
    return BenchDeployConfig(**values)


class TestArgumentParser(unittest.TestCase):

    def test_flags(self):
        args = create_argument_parser().parse_args(
            ["-i", "app:1", "-r", "4", "-w", "3", "--warmup", "30", "--deadline", "600"]
        )
        self.assertEqual(args.image, "app:1")
        self.assertEqual(args.iterations, 4)
        self.assertEqual(args.workers, 3)
        self.assertEqual(args.warmup_seconds, 30)
        self.assertEqual(args.deadline, 600)
        self.assertIsNone(args.verbose)

    def test_unset_flags_are_none(self):
        args = create_argument_parser().parse_args([])
        self.assertIsNone(args.image)
        self.assertIsNone(args.config)
        self.assertFalse(args.list_candidates)


class TestMain(unittest.TestCase):

    def test_list_candidates(self):
        with patch("builtins.print") as mock_print:
            self.assertEqual(main(["--list-candidates"]), EXIT_OK)
        self.assertIn("custom-8-12288", mock_print.call_args.args[0])

    def test_missing_image_is_usage_error(self):
        self.assertEqual(main([]), EXIT_USAGE)

    def test_missing_config_file_is_usage_error(self):
        self.assertEqual(main(["-i", "app:1", "-c", "/nonexistent/bench.yaml"]), EXIT_USAGE)


@pytest.fixture
def session_log(tmp_path):
    return str(tmp_path / "session.log")


@pytest.mark.parametrize("error", [
    NoViableResult("All configurations failed", outcomes=()),
    PromotionFailed("Could not deploy to production"),
])
def test_main_failed_run(error, session_log):
    with patch("benchdeploy.frontend.run_bench_deploy", side_effect=error):
        assert main(["-i", "app:1", "--session-log", session_log]) == EXIT_FAILED
    assert error.kind.value in Path(session_log).read_text()


def test_main_success(session_log):
    best = GlobalBest(result=BenchmarkResult(score=1.0, config=SMALL))
    with patch("benchdeploy.frontend.run_bench_deploy", return_value=best) as mock_run:
        assert main(["-i", "app:1", "-r", "2", "--session-log", session_log]) == EXIT_OK

    config = mock_run.call_args.args[0]
    assert config.image == "app:1"
    assert config.iterations == 2


# =============================================================================
# Full run against the fake gcloud/kubectl
# =============================================================================

def test_run_promotes_best_configuration():
    communicator = FakeCommunicator({
        SMALL.machine_type: ("100m", "40%"),
        LARGE.machine_type: ("300m", "60%"),
    })

    best = run_bench_deploy(fast_config(), communicator=communicator, run_log=quiet_log())

    small_score = 100 * 40 * 2 * 8192 / 0.066
    large_score = 300 * 60 * 8 * 12288 / 0.196
    winner = LARGE if large_score > small_score else SMALL
    assert best.config == winner
    assert best.score == pytest.approx(max(small_score, large_score))

    creates = [c for c in communicator.commands if c.startswith("gcloud container clusters create")]
    assert len(creates) == 3
    assert creates[-1].startswith("gcloud container clusters create bench-deploy-production")
    assert f"--machine-type={winner.machine_type}" in creates[-1]
    assert communicator.deployments[-1] == "bench-deploy-app"
    # Benchmark clusters are gone, the production one stays
    assert list(communicator.clusters) == ["bench-deploy-production"]
    assert not communicator.connected


def test_run_with_no_viable_result_never_promotes():
    communicator = FakeCommunicator({}, fail_commands=["clusters create"])

    with pytest.raises(NoViableResult) as excinfo:
        run_bench_deploy(fast_config(), communicator=communicator, run_log=quiet_log())

    assert sum(len(o.attempts) for o in excinfo.value.outcomes) == 2
    assert all(a.error_kind == "ProvisionFailed" for o in excinfo.value.outcomes for a in o.attempts)
    assert "bench-deploy-app" not in communicator.deployments
    assert not any("delete bench-deploy-production" in c for c in communicator.commands)
