"""
Image resolution and instance template provisioning.
"""

import copy
import logging

from clients import ComputeRestClient
from errors import NotFoundError, RolloutError
from models import Image, LaunchTemplate, derived_template_name

logger = logging.getLogger(__name__)

# Output-only fields of an instance template resource
OUTPUT_ONLY_FIELDS = ("id", "selfLink", "creationTimestamp", "kind")


def image_url(project_id: str, image_name: str) -> str:
    return f"projects/{project_id}/global/images/{image_name}"


def resolve_image(api: ComputeRestClient, project_id: str, image_id: str) -> Image:
    """
    Find the image whose name contains image_id.

    When several images match, the last one in listing order wins.

    Raises:
        NotFoundError: If no image name contains image_id
    """
    found = None
    for image in api.list_images():
        if image_id in image.name:
            found = image

    if found is None:
        raise NotFoundError(
            f"No image exists for identifier: {image_id} (project {project_id})"
        )

    logger.info(f"Resolved image {found.name} for identifier '{image_id}'")
    return found


def provision_template(
    api: ComputeRestClient, image: Image, reference_template: str, project_id: str
) -> LaunchTemplate:
    """
    Return an instance template that boots the given image.

    An existing template named after the image is reused as-is. Otherwise the
    reference template is cloned with its first disk pointed at the image.

    Args:
        api: Compute client
        image: Resolved image
        reference_template: Name of the template to clone
        project_id: GCP project ID

    Returns:
        The existing or newly created LaunchTemplate

    Raises:
        NotFoundError: If the reference template does not exist
    """
    name = derived_template_name(image.name)

    existing = api.get_template(name)
    if existing is not None:
        logger.info(f"Reusing existing instance template {name}")
        return existing

    source = None
    for template in api.list_templates():
        if template.name == reference_template:
            source = template

    if source is None:
        raise NotFoundError(f"No template exists for identifier: {reference_template}")

    body = copy.deepcopy(source.body)
    for key in OUTPUT_ONLY_FIELDS:
        body.pop(key, None)
    body["name"] = name
    disks = body.get("properties", {}).get("disks", [])
    if not disks:
        raise RolloutError(f"Template {reference_template} has no disks to boot from")
    disk = disks[0]
    disk.setdefault("initializeParams", {})["sourceImage"] = image_url(
        project_id, image.name
    )

    template = LaunchTemplate(name=name, body=body)
    op_name = api.create_template(template)
    logger.info(
        f"Created instance template {name} from {reference_template} (op={op_name})"
    )
    return template
