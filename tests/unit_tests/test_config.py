"""
Unit tests for configuration.
"""

import unittest
from argparse import Namespace
from config import RolloutConfig


class TestRolloutConfig(unittest.TestCase):
    """Test RolloutConfig data model."""

    def _config(self, **overrides):
        values = dict(
            project_id="acme",
            image_id="2024-01",
            zone="us-central1-a",
            instance_group="web-group",
            instance_template="base-template",
        )
        values.update(overrides)
        return RolloutConfig(**values)

    def test_config_defaults(self):
        """Test default timing and retry values."""
        config = self._config()
        self.assertEqual(config.poll_interval, 5.0)
        self.assertEqual(config.cooldown, 15.0)
        self.assertEqual(config.template_poll_interval, 1.0)
        self.assertEqual(config.retry_attempts, 5)
        self.assertEqual(config.retry_delay, 1.0)
        self.assertFalse(config.verbose)

    def test_config_from_args(self):
        """Test creating config from command-line arguments."""
        args = Namespace(
            project="acme",
            image_id="2024-01",
            zone="us-central1-a",
            instance_group="web-group",
            instance_template="base-template",
            verbose=True,
        )
        config = RolloutConfig.from_args(args)

        self.assertEqual(config.project_id, "acme")
        self.assertEqual(config.image_id, "2024-01")
        self.assertEqual(config.zone, "us-central1-a")
        self.assertEqual(config.instance_group, "web-group")
        self.assertEqual(config.instance_template, "base-template")
        self.assertTrue(config.verbose)

    def test_to_request(self):
        """Test the rollout request mirrors the configured parameters."""
        request = self._config().to_request()
        self.assertEqual(request.project_id, "acme")
        self.assertEqual(request.instance_template, "base-template")


if __name__ == "__main__":
    unittest.main()
