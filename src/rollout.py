"""
Rolling image deployment onto a Compute Engine managed instance group.

The driver resolves the image, provisions a template for it, repoints the
group and then recreates the group's instances one at a time, waiting for
the whole group to settle after each recreation.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

from clients import ComputeRestClient
from config import RolloutConfig
from errors import SafetyAbort
from groups import repoint_group, wait_for_convergence
from images import provision_template, resolve_image
from models import (
    Image,
    InstanceGroup,
    LaunchTemplate,
    ManagedInstance,
    RecreateResult,
    RolloutState,
)

logger = logging.getLogger(__name__)

PRODUCTION_MARKER = "prod"


class RolloutDriver:
    """Drives one rollout run from image resolution to the last recreation."""

    def __init__(
        self,
        config: RolloutConfig,
        api: Optional[ComputeRestClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the rollout driver.

        Args:
            config: Rollout configuration
            api: Compute client; a ComputeRestClient is built when omitted
            sleep: Sleep function used by every wait and cool-down
        """
        self.config = config
        self.request = config.to_request()
        self.api = api if api is not None else ComputeRestClient(
            project_id=config.project_id
        )
        self.sleep = sleep

        self.state = RolloutState.INIT
        self.image: Optional[Image] = None
        self.template: Optional[LaunchTemplate] = None
        self.group: Optional[InstanceGroup] = None
        self.instances: List[ManagedInstance] = []

        self.stats = {"total": 0, "recreated": 0, "failed": 0}

        # Timing and results tracking
        self.run_start_time: Optional[float] = None
        self.run_end_time: Optional[float] = None
        self.results: List[RecreateResult] = []

    def _transition(self, state: RolloutState) -> None:
        logger.debug(f"Rollout state: {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> Dict:
        """
        Execute the rollout.

        Returns:
            Statistics dictionary

        Raises:
            ValueError: If a required rollout parameter is missing
            NotFoundError: If the image or reference template does not exist
            SafetyAbort: If a single-instance production group would be rolled
            Exception: Any provider error, unchanged
        """
        self.run_start_time = time.time()

        try:
            self.request.validate()
            self._log_banner()
            self._execute()
        except Exception:
            self._transition(RolloutState.FAILED)
            raise
        except SafetyAbort:
            self._transition(RolloutState.FAILED)
            raise
        finally:
            self.run_end_time = time.time()
            self._print_report()

        return self.stats

    def _execute(self) -> None:
        req = self.request
        cfg = self.config

        self.image = resolve_image(self.api, req.project_id, req.image_id)
        logger.info(f"Got image {self.image.name}")
        self._transition(RolloutState.IMAGE_RESOLVED)

        self.template = provision_template(
            self.api, self.image, req.instance_template, req.project_id
        )
        logger.info(f"Instance template {self.template.name}")
        self._transition(RolloutState.TEMPLATE_READY)

        self.group = repoint_group(
            self.api,
            self.template,
            req.project_id,
            req.zone,
            req.instance_group,
            attempts=cfg.retry_attempts,
            retry_delay=cfg.retry_delay,
            poll_interval=cfg.template_poll_interval,
            sleep=self.sleep,
        )
        logger.info(f"Instance group manager {self.group.name}")

        self.instances = self.api.list_managed_instances(req.zone, self.group.name)
        self.stats["total"] = len(self.instances)
        self._transition(RolloutState.GROUP_REPOINTED)

        self._check_single_instance_safety()

        self._transition(RolloutState.ROLLING_OUT)
        for inst in self.instances:
            self._recreate_and_wait(inst)
            logger.info(f"Letting {inst.short_name!r} cool down")
            self.sleep(cfg.cooldown)

        self._transition(RolloutState.DONE)

    def _check_single_instance_safety(self) -> None:
        """Refuse to roll a single-instance production group."""
        if self.group.target_size != 1:
            return

        logger.warning(
            "Only 1 host available to rollout to, will most likely see service interruption"
        )
        if (
            PRODUCTION_MARKER in self.group.name
            or PRODUCTION_MARKER in self.image.name
        ):
            logger.critical("Production deployment detected, failing")
            raise SafetyAbort(
                f"Refusing to roll single-instance production group {self.group.name}"
            )

    def _recreate_and_wait(self, inst: ManagedInstance) -> None:
        req = self.request
        logger.info(f"Rolling out to {inst.short_name}")

        start = time.time()
        result = RecreateResult(
            instance_name=inst.short_name, status="failed", start_time=start
        )
        self.results.append(result)

        try:
            op_name = self.api.recreate_instances(
                req.zone, self.group.name, [inst.instance]
            )
            logger.debug(f"Recreate requested for {inst.short_name} (op={op_name})")
            result.polls = wait_for_convergence(
                self.api,
                req.zone,
                self.group.name,
                poll_interval=self.config.poll_interval,
                sleep=self.sleep,
            )
        except Exception as e:
            result.error_message = str(e)
            self.stats["failed"] += 1
            raise
        finally:
            result.end_time = time.time()
            result.duration_seconds = result.end_time - start

        result.status = "success"
        self.stats["recreated"] += 1
        logger.info(
            f"✓ {inst.short_name} recreated and group settled in {result.duration_seconds:.1f}s"
        )

    def _log_banner(self) -> None:
        req = self.request
        logger.info("=" * 70)
        logger.info("Managed Instance Group Image Rollout")
        logger.info("=" * 70)
        logger.info(f"Project: {req.project_id}")
        logger.info(f"Image identifier: {req.image_id}")
        logger.info(f"Zone: {req.zone}")
        logger.info(f"Instance group: {req.instance_group}")
        logger.info(f"Reference template: {req.instance_template}")
        logger.info(f"Poll interval: {self.config.poll_interval}s")
        logger.info(f"Cool-down: {self.config.cooldown}s")
        logger.info(
            f"Start time: {datetime.fromtimestamp(self.run_start_time).strftime('%Y-%m-%d %H:%M:%S')}"
        )
        logger.info("=" * 70)

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            mins = int(seconds // 60)
            secs = seconds % 60
            return f"{mins}m {secs:.0f}s"
        else:
            hours = int(seconds // 3600)
            mins = int((seconds % 3600) // 60)
            secs = seconds % 60
            return f"{hours}h {mins}m {secs:.0f}s"

    def _print_report(self) -> None:
        """Log the final state, timing and per-instance results."""
        total_duration = self.run_end_time - self.run_start_time

        logger.info("")
        logger.info("=" * 70)
        logger.info("ROLLOUT REPORT")
        logger.info("=" * 70)
        logger.info(f"Final state:     {self.state.value}")
        if self.image:
            logger.info(f"Image:           {self.image.name}")
        if self.template:
            logger.info(f"Template:        {self.template.name}")
        logger.info(f"Total duration:  {self._format_duration(total_duration)}")

        logger.info("")
        logger.info("STATISTICS")
        logger.info("-" * 40)
        for k, v in self.stats.items():
            logger.info(f"{k:20s}: {v}")

        if self.results:
            logger.info("")
            logger.info(f"{'Instance':<30} {'Status':<10} {'Duration':<12} {'Polls'}")
            logger.info("-" * 70)
            for r in self.results:
                duration_str = (
                    self._format_duration(r.duration_seconds)
                    if r.duration_seconds is not None
                    else "N/A"
                )
                logger.info(
                    f"{r.instance_name:<30} {r.status:<10} {duration_str:<12} {r.polls}"
                )
                if r.error_message:
                    logger.info(f"  error: {r.error_message[:60]}")

        skipped = self.stats["total"] - len(self.results)
        if self.state == RolloutState.FAILED and skipped > 0:
            logger.info(f"{skipped} instance(s) not reached before failure")

        logger.info("=" * 70)
