import tempfile
import textwrap
import unittest
from datetime import timedelta
from pathlib import Path

from repeater.config_loader import load_config, parse_config, parse_duration


class ParseDurationTests(unittest.TestCase):
    def test_units(self):
        self.assertEqual(parse_duration("30s"), timedelta(seconds=30))
        self.assertEqual(parse_duration("1.5m"), timedelta(seconds=90))
        self.assertEqual(parse_duration("2h"), timedelta(hours=2))
        self.assertEqual(parse_duration("1d"), timedelta(days=1))

    def test_plain_numbers(self):
        self.assertEqual(parse_duration(5), timedelta(seconds=5))
        self.assertEqual(parse_duration(0.25), timedelta(milliseconds=250))
        self.assertEqual(parse_duration("42"), timedelta(seconds=42))

    def test_rejects_garbage(self):
        garbage = ("", "5x", "abcs", True, None, [1])
        out_of_range = ("infs", "nans", "1e400s", "2000000000d", float("inf"), "9" * 400)
        for value in garbage + out_of_range:
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_duration(value)


class LoadConfigTests(unittest.TestCase):
    def _write(self, content: str) -> Path:
        handle = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False, encoding="utf-8")
        with handle:
            handle.write(textwrap.dedent(content))
        path = Path(handle.name)
        self.addCleanup(path.unlink)
        return path

    def test_full_file(self):
        path = self._write(
            """
            scheduler:
              timer: thread
              stop_on_error: false
            logging:
              level: debug
              file: logs/repeater.log
            jobs:
              - name: heartbeat
                every: 30s
                url: https://example.com/ping
                method: head
                timeout: 5
                backoff: 2
                max_interval: 5m
              - name: cleanup
                once: 10m
                command: rm -rf "/tmp/some dir"
            """
        )
        config = load_config(path)

        self.assertEqual(config.scheduler.timer, "thread")
        self.assertFalse(config.scheduler.stop_on_error)
        self.assertEqual(config.logging.level, "DEBUG")
        self.assertEqual(config.logging.file, Path("logs/repeater.log"))

        heartbeat, cleanup = config.jobs
        self.assertEqual(heartbeat.mode, "every")
        self.assertEqual(heartbeat.interval, timedelta(seconds=30))
        self.assertEqual(heartbeat.url, "https://example.com/ping")
        self.assertEqual(heartbeat.method, "HEAD")
        self.assertEqual(heartbeat.timeout, 5.0)
        self.assertEqual(heartbeat.backoff, 2.0)
        self.assertEqual(heartbeat.max_interval, timedelta(minutes=5))
        self.assertIsNone(heartbeat.command)

        self.assertEqual(cleanup.mode, "once")
        self.assertEqual(cleanup.interval, timedelta(minutes=10))
        self.assertEqual(cleanup.command, ("rm", "-rf", "/tmp/some dir"))

    def test_empty_file_uses_defaults(self):
        config = load_config(self._write(""))
        self.assertEqual(config.scheduler.timer, "serial")
        self.assertTrue(config.scheduler.stop_on_error)
        self.assertEqual(config.logging.level, "INFO")
        self.assertEqual(tuple(config.jobs), ())

    def test_root_must_be_mapping(self):
        with self.assertRaises(ValueError):
            load_config(self._write("- just\n- a list\n"))


class ParseConfigValidationTests(unittest.TestCase):
    def test_rejects_bad_jobs(self):
        cases = {
            "no schedule": {"name": "a", "command": ["true"]},
            "both schedules": {"name": "a", "every": 1, "once": 1, "command": ["true"]},
            "zero interval": {"name": "a", "every": 0, "command": ["true"]},
            "no action": {"name": "a", "every": 1},
            "two actions": {"name": "a", "every": 1, "command": ["true"], "url": "http://x"},
            "empty command": {"name": "a", "every": 1, "command": []},
            "bad count": {"name": "a", "every": 1, "command": ["true"], "count": 0},
            "bad backoff": {"name": "a", "every": 1, "command": ["true"], "backoff": 0.5},
        }
        for label, job in cases.items():
            with self.subTest(label):
                with self.assertRaises(ValueError):
                    parse_config({"jobs": [job]})

    def test_rejects_duplicate_names(self):
        job = {"name": "same", "every": 1, "command": ["true"]}
        with self.assertRaises(ValueError):
            parse_config({"jobs": [job, dict(job)]})

    def test_rejects_unknown_timer(self):
        with self.assertRaises(ValueError):
            parse_config({"scheduler": {"timer": "asyncio"}})

    def test_default_job_name(self):
        config = parse_config({"jobs": [{"every": "1s", "command": ["true"]}]})
        self.assertEqual(config.jobs[0].name, "job-0")


if __name__ == "__main__":
    unittest.main()
