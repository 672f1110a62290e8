"""
Tests for the installation engine — planning, fallbacks, retries, aborts.
"""

from snapflat.adapters.mock import FakeHost, MockAdapter
from snapflat.adapters.registry import AdapterRegistry
from snapflat.core.engine.executor import build_install_plan, execute_plan
from snapflat.core.models.options import ResolvedConfig

FULL = ResolvedConfig(init_system_available=True)


def _host(with_snap: bool = True) -> FakeHost:
    return FakeHost(executables=["snap"] if with_snap else [])


# ── Planning ─────────────────────────────────────────────────────────


class TestBuildInstallPlan:
    def test_default_sequence(self, settings):
        plan = build_install_plan(FULL, settings, _host())
        assert plan.step_ids == [
            "apt-update",
            "apt-upgrade",
            "base-deps",
            "snapd",
            "snapd-socket",
            "snapd-service",
            "snap-classic",
            "snap-core",
            "flatpak",
            "flathub-add",
            "flathub-enable",
            "flatpak-update",
        ]

    def test_apt_runs_noninteractive(self, settings):
        step = build_install_plan(FULL, settings, _host()).get("base-deps")
        action = step.actions[0]
        assert action.params["command"] == [
            "apt-get", "install", "-y", "--no-install-recommends",
            "ca-certificates", "curl", "gnupg",
        ]
        assert action.params["env"] == {"DEBIAN_FRONTEND": "noninteractive"}

    def test_flathub_remote(self, settings):
        step = build_install_plan(FULL, settings, _host()).get("flathub-add")
        assert step.actions[0].params["command"] == [
            "flatpak", "--system", "remote-add", "--if-not-exists",
            "flathub", "https://flathub.org/repo/flathub.flatpakrepo",
        ]

    def test_skip_update(self, settings):
        config = FULL.model_copy(update={"skip_update": True})
        plan = build_install_plan(config, settings, _host())
        assert plan.get("apt-update").skip_reason
        assert plan.get("apt-upgrade").skip_reason

    def test_no_init_system_skips_services(self, settings):
        config = ResolvedConfig(init_system_available=False)
        plan = build_install_plan(config, settings, _host())
        assert plan.get("snapd-socket").skip_reason
        assert plan.get("snapd-service").skip_reason

    def test_store_steps(self, settings):
        gnome = build_install_plan(
            FULL.model_copy(update={"install_gnome_software": True}), settings, _host()
        )
        assert gnome.step_ids[-1] == "gnome-software"
        assert len(gnome.get("gnome-software").actions) == 3

        kde = build_install_plan(
            FULL.model_copy(update={"install_kde_discover": True}), settings, _host()
        )
        assert kde.step_ids[-1] == "kde-discover"
        assert len(kde.get("kde-discover").actions) == 6
        assert "gnome-software" not in kde.step_ids


# ── Execution ────────────────────────────────────────────────────────


class TestExecutePlan:
    def _run(self, config, settings, mock, host=None, sleeps=None):
        plan = build_install_plan(config, settings, host or _host())
        registry = AdapterRegistry(mock_adapter=mock)
        return execute_plan(plan, registry, sleep=(sleeps.append if sleeps is not None else lambda s: None))

    def test_all_ok(self, settings):
        mock = MockAdapter()
        report = self._run(FULL, settings, mock)
        assert report.status == "ok"
        assert report.failed == 0
        assert mock.executed_ids[0] == "apt-update"
        assert mock.executed_ids[-1] == "flatpak-update"

    def test_skipped_steps_are_not_executed(self, settings):
        mock = MockAdapter()
        config = ResolvedConfig(skip_update=True, init_system_available=False)
        report = self._run(config, settings, mock)
        for step_id in ("apt-update", "apt-upgrade", "snapd-socket", "snapd-service"):
            assert step_id not in mock.executed_ids
        assert report.skipped == 4

    def test_required_failure_stops_run(self, settings):
        mock = MockAdapter()
        mock.set_failure("snapd", error="E: Unable to locate package snapd")
        report = self._run(FULL, settings, mock)
        assert report.status == "failed"
        assert report.aborted_at == "snapd"
        assert "flatpak" not in mock.executed_ids

    def test_best_effort_failure_continues(self, settings):
        mock = MockAdapter()
        mock.set_failure("snapd-service")
        mock.set_failure("flathub-enable")
        report = self._run(FULL, settings, mock)
        assert report.status == "ok"
        assert report.failed == 2
        assert "flatpak-update" in mock.executed_ids

    def test_snap_core_retried_once(self, settings):
        mock = MockAdapter()
        mock.set_failure("snap-core", times=1)
        sleeps: list[float] = []
        settings.snap_core_retry_delay = 2.0
        report = self._run(FULL, settings, mock, sleeps=sleeps)
        assert report.status == "ok"
        assert mock.executed_ids.count("snap-core") == 2
        assert sleeps == [2.0]

    def test_snap_core_failure_does_not_block_flatpak(self, settings, caplog):
        mock = MockAdapter()
        mock.set_failure("snap-core", error="error: too early for operation, device not yet seeded")
        with caplog.at_level("WARNING"):
            report = self._run(FULL, settings, mock)
        assert mock.executed_ids.count("snap-core") == 2
        assert report.status == "ok"
        assert report.aborted_at is None
        assert report.failed == 1
        for step_id in ("flatpak", "flathub-add", "flathub-enable", "flatpak-update"):
            assert step_id in mock.executed_ids
        assert "device not yet seeded" in caplog.text

    def test_snap_core_skipped_without_snap_command(self, settings, caplog):
        mock = MockAdapter()
        with caplog.at_level("WARNING"):
            report = self._run(FULL, settings, mock, host=_host(with_snap=False))
        assert "snap-core" not in mock.executed_ids
        assert report.status == "ok"
        assert "'snap' command not available" in caplog.text

    def test_store_fallback_stops_at_first_success(self, settings):
        mock = MockAdapter()
        mock.set_failure("kde-discover:1")
        mock.set_failure("kde-discover:2")
        config = FULL.model_copy(update={"install_kde_discover": True})
        report = self._run(config, settings, mock)
        assert report.status == "ok"
        kde = [i for i in mock.executed_ids if i.startswith("kde-discover")]
        assert kde == ["kde-discover:1", "kde-discover:2", "kde-discover:3"]

    def test_store_fallback_all_fail(self, settings):
        mock = MockAdapter()
        for n in (1, 2, 3):
            mock.set_failure(f"gnome-software:{n}")
        config = FULL.model_copy(update={"install_gnome_software": True})
        report = self._run(config, settings, mock)
        assert report.aborted_at == "gnome-software"

    def test_on_step_callback(self, settings):
        seen = []
        plan = build_install_plan(FULL, settings, _host())
        execute_plan(plan, AdapterRegistry(mock_adapter=MockAdapter()), on_step=lambda s: seen.append(s.id))
        assert seen == plan.step_ids

    def test_dry_run_executes_nothing(self, settings):
        mock = MockAdapter()
        plan = build_install_plan(FULL, settings, _host(with_snap=False))
        report = execute_plan(plan, AdapterRegistry(mock_adapter=mock), dry_run=True)
        assert mock.call_count == 0
        assert report.dry_run
        assert report.skipped == report.total == len(plan.steps)
        flathub = next(r for r in report.receipts if r.action_id == "flathub-add")
        assert "remote-add" in flathub.output

    def test_to_dict(self, settings):
        report = self._run(FULL, settings, MockAdapter())
        data = report.to_dict()
        assert data["status"] == "ok"
        assert len(data["receipts"]) == data["total"]
