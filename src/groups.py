"""
Managed instance group operations: template repointing, convergence waiting
and resizing.
"""

import logging
import time
from typing import Callable, TypeVar

from clients import ComputeRestClient
from models import InstanceGroup, LaunchTemplate

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_POLL_INTERVAL = 5.0


def template_url(project_id: str, template_name: str) -> str:
    return f"projects/{project_id}/global/instanceTemplates/{template_name}"


def retry_call(
    fn: Callable[[], T],
    description: str,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn until it succeeds or attempts are exhausted.

    Args:
        fn: Zero-argument callable to invoke
        description: Name of the call, for logging
        attempts: Total number of attempts (including the first)
        delay: Fixed delay between attempts (seconds)
        sleep: Sleep function

    Returns:
        The return value of fn

    Raises:
        The last exception raised by fn once attempts are exhausted
    """
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as e:
            if attempt >= attempts:
                logger.error(f"{description} failed after {attempts} attempts: {e}")
                raise
            logger.warning(f"Error from {description}: {e}")
            logger.info(f"Waiting, retry {attempt}")
            sleep(delay)


def repoint_group(
    api: ComputeRestClient,
    template: LaunchTemplate,
    project_id: str,
    zone: str,
    group: str,
    attempts: int = DEFAULT_ATTEMPTS,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    poll_interval: float = DEFAULT_RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> InstanceGroup:
    """
    Point a group at template and wait until the group reports it.

    The set-template and first read-back calls are retried a bounded number
    of times. Propagation of the new template is then polled with no cap.

    Returns:
        The refreshed InstanceGroup
    """
    url = template_url(project_id, template.name)

    retry_call(
        lambda: api.set_group_template(zone, group, url),
        "setInstanceTemplate",
        attempts=attempts,
        delay=retry_delay,
        sleep=sleep,
    )

    igm = retry_call(
        lambda: api.get_group(zone, group),
        "get instance group",
        attempts=attempts,
        delay=retry_delay,
        sleep=sleep,
    )

    while template.name not in igm.instance_template:
        logger.info(
            f"Waiting for instance group {igm.name} to be updated. "
            f"Got {igm.instance_template}. Wanted {template.name}"
        )
        sleep(poll_interval)
        igm = api.get_group(zone, group)

    logger.info(f"Updated {group} with template {template.name}")
    return igm


def wait_for_convergence(
    api: ComputeRestClient,
    zone: str,
    group: str,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Block until every managed instance in the group reports no current action.

    There is no timeout: a group that never settles keeps this call waiting.

    Returns:
        Number of listManagedInstances calls made
    """
    polls = 1
    instances = api.list_managed_instances(zone, group)

    while True:
        busy = [inst for inst in instances if not inst.is_idle]
        if not busy:
            return polls

        for inst in busy:
            logger.info(f"  {inst.short_name}: action={inst.current_action}")
        logger.info(f"Waiting {poll_interval:g} seconds, retry {polls}")
        sleep(poll_interval)

        instances = api.list_managed_instances(zone, group)
        polls += 1


def resize_group(
    api: ComputeRestClient,
    zone: str,
    group: str,
    size: int,
    attempts: int = DEFAULT_ATTEMPTS,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Set the group's target size and wait for it to converge."""
    logger.info(f"Setting {group} to size {size}")

    op_name = retry_call(
        lambda: api.resize_group(zone, group, size),
        "resize",
        attempts=attempts,
        delay=retry_delay,
        sleep=sleep,
    )
    logger.info(f"Resize requested for {group} (op={op_name})")

    wait_for_convergence(api, zone, group, poll_interval=poll_interval, sleep=sleep)
