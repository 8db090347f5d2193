import os
import tempfile
import unittest
from pathlib import Path


class TestSettings(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self._old = os.environ.get("MDCAT_SETTINGS")
        os.environ["MDCAT_SETTINGS"] = str(Path(self._td.name) / "settings.yaml")

    def tearDown(self) -> None:
        if self._old is None:
            os.environ.pop("MDCAT_SETTINGS", None)
        else:
            os.environ["MDCAT_SETTINGS"] = self._old
        self._td.cleanup()

    def test_defaults_without_file(self) -> None:
        from mdcat.kernel.settings import load_settings

        s = load_settings(env={})
        self.assertTrue(s.activate)
        self.assertTrue(s.spawn_on_enqueue_failure)
        self.assertEqual(s.poll_interval_seconds, 0.5)
        self.assertEqual(s.log_level, "INFO")
        self.assertEqual(s.spawn_command[-2:], ["mdcat", "run"])

    def test_yaml_file_and_loose_values(self) -> None:
        from mdcat.kernel.settings import load_settings

        Path(os.environ["MDCAT_SETTINGS"]).write_text(
            "activate: 'false'\npoll_interval_seconds: 0.001\nlog_level: debug\nspawn_command: [mdcat-gui]\n",
            encoding="utf-8",
        )
        s = load_settings(env={})
        self.assertFalse(s.activate)
        self.assertEqual(s.poll_interval_seconds, 0.05)
        self.assertEqual(s.log_level, "DEBUG")
        self.assertEqual(s.spawn_command, ["mdcat-gui"])

    def test_env_overrides_file(self) -> None:
        from mdcat.kernel.settings import load_settings

        Path(os.environ["MDCAT_SETTINGS"]).write_text("spawn_on_enqueue_failure: true\n", encoding="utf-8")
        s = load_settings(env={"MDCAT_SPAWN_ON_ENQUEUE_FAILURE": "0", "MDCAT_POLL_INTERVAL": "2"})
        self.assertFalse(s.spawn_on_enqueue_failure)
        self.assertEqual(s.poll_interval_seconds, 2.0)

    def test_malformed_file_yields_defaults(self) -> None:
        from mdcat.kernel.settings import load_settings

        Path(os.environ["MDCAT_SETTINGS"]).write_text("- just\n- a list\n", encoding="utf-8")
        self.assertTrue(load_settings(env={}).activate)

    def test_save_round_trip(self) -> None:
        from mdcat.kernel.settings import Settings, load_settings, save_settings

        save_settings(Settings(state_dir="/srv/mdcat", activate=False))
        s = load_settings(env={})
        self.assertEqual(s.state_dir, "/srv/mdcat")
        self.assertFalse(s.activate)


class TestHome(unittest.TestCase):
    def test_env_beats_state_dir(self) -> None:
        from mdcat.paths import mdcat_home

        old = os.environ.get("MDCAT_HOME")
        try:
            with tempfile.TemporaryDirectory() as td:
                os.environ["MDCAT_HOME"] = td
                self.assertEqual(mdcat_home("/elsewhere"), Path(td).resolve())
                os.environ.pop("MDCAT_HOME")
                self.assertEqual(mdcat_home(td), Path(td).resolve())
                self.assertEqual(mdcat_home().name, "mdcat-instances")
        finally:
            if old is None:
                os.environ.pop("MDCAT_HOME", None)
            else:
                os.environ["MDCAT_HOME"] = old


if __name__ == "__main__":
    unittest.main()
