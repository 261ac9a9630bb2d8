"""
Unit tests for image resolution and template provisioning.
"""

import unittest
from unittest.mock import MagicMock

from errors import NotFoundError, ProviderError, RolloutError
from images import provision_template, resolve_image
from models import Image, LaunchTemplate


def reference_template():
    return LaunchTemplate.from_api(
        {
            "kind": "compute#instanceTemplate",
            "id": "123456",
            "name": "base-template",
            "selfLink": "https://.../global/instanceTemplates/base-template",
            "creationTimestamp": "2023-12-01T00:00:00.000-08:00",
            "properties": {
                "machineType": "e2-medium",
                "disks": [
                    {
                        "boot": True,
                        "initializeParams": {
                            "sourceImage": "projects/acme/global/images/2023-12-web"
                        },
                    }
                ],
            },
        }
    )


class TestResolveImage(unittest.TestCase):
    """Tests for resolve_image."""

    def setUp(self):
        self.api = MagicMock()

    def test_last_match_wins(self):
        """Test the last image in listing order containing the identifier wins."""
        self.api.list_images.return_value = [
            Image(name="v1-build"),
            Image(name="v2-build"),
            Image(name="v3-build"),
        ]

        image = resolve_image(self.api, "acme", "build")

        self.assertEqual(image.name, "v3-build")

    def test_substring_match(self):
        """Test non-matching images are ignored."""
        self.api.list_images.return_value = [
            Image(name="2023-12-web"),
            Image(name="2024-01-web"),
            Image(name="2024-02-worker"),
        ]

        image = resolve_image(self.api, "acme", "2024-01")

        self.assertEqual(image.name, "2024-01-web")

    def test_no_match_raises_not_found(self):
        """Test NotFoundError when nothing matches."""
        self.api.list_images.return_value = [Image(name="v1-build")]

        with self.assertRaises(NotFoundError):
            resolve_image(self.api, "acme", "release")
        self.assertEqual(self.api.list_images.call_count, 1)


class TestProvisionTemplate(unittest.TestCase):
    """Tests for provision_template."""

    def setUp(self):
        self.api = MagicMock()
        self.image = Image(name="2024-01-web")
        self.reference = reference_template()

    def test_existing_template_is_reused(self):
        """Test the fast path returns an existing template without creating."""
        existing = LaunchTemplate(name="2024-01-web-template", body={})
        self.api.get_template.return_value = existing

        template = provision_template(self.api, self.image, "base-template", "acme")

        self.assertIs(template, existing)
        self.api.get_template.assert_called_once_with("2024-01-web-template")
        self.api.list_templates.assert_not_called()
        self.api.create_template.assert_not_called()

    def test_clones_reference_template(self):
        """Test a new template is cloned and pointed at the image."""
        self.api.get_template.return_value = None
        self.api.list_templates.return_value = [
            LaunchTemplate(name="other-template", body={}),
            self.reference,
        ]
        self.api.create_template.return_value = "operation-1"

        template = provision_template(self.api, self.image, "base-template", "acme")

        self.assertEqual(template.name, "2024-01-web-template")
        self.assertEqual(template.body["name"], "2024-01-web-template")
        self.assertEqual(
            template.source_image, "projects/acme/global/images/2024-01-web"
        )
        self.assertEqual(template.body["properties"]["machineType"], "e2-medium")
        for key in ("id", "selfLink", "creationTimestamp", "kind"):
            self.assertNotIn(key, template.body)
        self.api.create_template.assert_called_once_with(template)

    def test_reference_template_is_not_mutated(self):
        """Test cloning leaves the reference template untouched."""
        self.api.get_template.return_value = None
        self.api.list_templates.return_value = [self.reference]

        provision_template(self.api, self.image, "base-template", "acme")

        self.assertEqual(self.reference.name, "base-template")
        self.assertEqual(
            self.reference.source_image, "projects/acme/global/images/2023-12-web"
        )

    def test_idempotent_provisioning(self):
        """Test a second call for the same image creates nothing."""
        self.api.list_templates.return_value = [self.reference]
        created = []

        def get_template(name):
            return created[-1] if created else None

        self.api.get_template.side_effect = get_template
        self.api.create_template.side_effect = created.append

        first = provision_template(self.api, self.image, "base-template", "acme")
        second = provision_template(self.api, self.image, "base-template", "acme")

        self.assertEqual(first.name, second.name)
        self.assertEqual(self.api.create_template.call_count, 1)

    def test_missing_reference_template_raises(self):
        """Test NotFoundError when the reference template is absent."""
        self.api.get_template.return_value = None
        self.api.list_templates.return_value = [
            LaunchTemplate(name="base-template-old", body={})
        ]

        with self.assertRaises(NotFoundError):
            provision_template(self.api, self.image, "base-template", "acme")
        self.api.create_template.assert_not_called()

    def test_reference_without_disks_raises(self):
        """Test a reference template with no disks cannot be cloned."""
        self.api.get_template.return_value = None
        self.api.list_templates.return_value = [
            LaunchTemplate(name="base-template", body={"properties": {}})
        ]

        with self.assertRaises(RolloutError):
            provision_template(self.api, self.image, "base-template", "acme")

    def test_create_failure_propagates(self):
        """Test a failed insert surfaces unchanged."""
        self.api.get_template.return_value = None
        self.api.list_templates.return_value = [self.reference]
        self.api.create_template.side_effect = ProviderError("quota", status_code=403)

        with self.assertRaises(ProviderError):
            provision_template(self.api, self.image, "base-template", "acme")


if __name__ == "__main__":
    unittest.main()
