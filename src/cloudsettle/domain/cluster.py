"""Create, update and delete flows for managed Kubernetes clusters.

An update is split into phases that must never overlap: a template upgrade, a
master flavour resize and an attribute patch all move the cluster through
``reconciling``, so each one has to settle back to ``running`` before the next
one starts. Power changes are phases too; powering on comes first and powering
off comes last.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import (
    MutationError,
    ProhibitedStateError,
    RemoteAPIError,
    RemoteErrorState,
    RemoteReadError,
)
from .outcomes import is_not_found
from .phases import Phase, PhaseOrchestrator
from .ports.cloud import ClusterPatch
from .states import ClusterStatus, PowerAction
from .waiting import Refreshed, StateWaiter, WaitSpec

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from cloudsettle.config.timeouts import OperationTimeouts

    from .model import Cluster
    from .ports.cloud import ClusterAPI

log = getLogger(__name__)

MUTABLE_STATUSES: Final = frozenset({ClusterStatus.RUNNING, ClusterStatus.SHUTOFF})
POWER_STATUSES: Final = MUTABLE_STATUSES

_POWER_ACTIONS: Final = {
    ClusterStatus.RUNNING: PowerAction.TURN_ON,
    ClusterStatus.SHUTOFF: PowerAction.TURN_OFF,
}


@dataclass(slots=True, frozen=True)
class ClusterChange:
    """Requested changes; ``None`` leaves an attribute as it is."""

    cluster_template_id: str | None = None
    master_flavor: str | None = None
    labels: Mapping[str, str] | None = None
    security_policy_sync: bool | None = None
    status: ClusterStatus | None = None

    def __post_init__(self) -> None:
        if self.status is not None and self.status not in POWER_STATUSES:
            raise ValueError(f"unknown status provided: {self.status}")


@dataclass(slots=True)
class ClusterOperations:
    """Bundle of the collaborators every cluster flow needs."""

    api: ClusterAPI
    timeouts: OperationTimeouts
    waiter: StateWaiter = field(default_factory=StateWaiter)

    def refresh(
        self, cluster_id: str, *, operation: str = "refresh cluster"
    ) -> Callable[[], Refreshed[Cluster, ClusterStatus]]:
        """Return a refresh function that raises ``RemoteErrorState`` on ``error``."""

        def _refresh() -> Refreshed[Cluster, ClusterStatus]:
            cluster = self.api.get_cluster(cluster_id)
            if cluster.status is ClusterStatus.ERROR:
                raise RemoteErrorState(
                    object_id=cluster_id,
                    operation=operation,
                    label=cluster.status,
                    reason=cluster.status_reason,
                )
            return Refreshed(cluster, cluster.status)

        return _refresh

    def read(self, cluster_id: str, *, operation: str) -> Cluster:
        try:
            return self.api.get_cluster(cluster_id)
        except RemoteAPIError as exc:
            raise RemoteReadError(object_id=cluster_id, operation=operation, cause=exc) from exc

    def settle_spec(
        self,
        cluster_id: str,
        *,
        operation: str,
        pending: frozenset[ClusterStatus],
        target: frozenset[ClusterStatus],
    ) -> WaitSpec[Cluster, ClusterStatus]:
        return WaitSpec(
            refresh=self.refresh(cluster_id, operation=operation),
            pending=pending,
            target=target,
            timeout=self.timeouts.update,
            initial_delay=self.timeouts.create_update_delay,
            poll_interval=self.timeouts.create_update_poll_interval,
            object_id=cluster_id,
            operation=operation,
        )

    def create(self, payload: Mapping[str, object]) -> Cluster:
        try:
            cluster_id = self.api.create_cluster(payload)
        except RemoteAPIError as exc:
            name = str(payload.get("name", "cluster"))
            raise MutationError(object_id=name, operation="create cluster", cause=exc) from exc
        log.info("Created cluster %s; waiting for it to become running", cluster_id)
        return self.wait_created(cluster_id)

    def wait_created(self, cluster_id: str) -> Cluster:
        spec = WaitSpec(
            refresh=self.refresh(cluster_id, operation="create cluster"),
            pending=frozenset({ClusterStatus.PROVISIONING}),
            target=frozenset({ClusterStatus.RUNNING}),
            timeout=self.timeouts.create,
            initial_delay=self.timeouts.create_update_delay,
            poll_interval=self.timeouts.create_update_poll_interval,
            object_id=cluster_id,
            operation="become running",
        )
        return self.waiter.wait_present(spec)

    def plan_update(self, current: Cluster, change: ClusterChange) -> list[Phase[ClusterStatus]]:
        """Return the ordered phases needed to apply ``change`` to ``current``."""

        if current.status not in MUTABLE_STATUSES:
            raise ProhibitedStateError(
                object_id=current.id,
                operation="changes in cluster",
                label=current.status,
            )

        power = change.status if change.status not in (None, current.status) else None
        phases: list[Phase[ClusterStatus]] = []
        if power is ClusterStatus.RUNNING:
            phases.append(self._power_phase(current.id, power))

        template_id = change.cluster_template_id
        if template_id is not None and template_id != current.cluster_template_id:
            phases.append(
                self._attribute_phase(
                    current.id,
                    "upgrade cluster template",
                    lambda: self.api.upgrade_cluster(current.id, template_id=template_id),
                )
            )

        flavor = change.master_flavor
        if flavor is not None and flavor != current.master_flavor:
            phases.append(
                self._attribute_phase(
                    current.id,
                    "resize masters",
                    lambda: self.api.resize_masters(current.id, flavor=flavor),
                )
            )

        patches = _attribute_patches(current, change)
        if patches:
            phases.append(
                self._attribute_phase(
                    current.id,
                    "update cluster attributes",
                    lambda: self.api.patch_cluster(current.id, patches),
                )
            )

        if power is ClusterStatus.SHUTOFF:
            phases.append(self._power_phase(current.id, power))
        return phases

    def update(
        self,
        cluster_id: str,
        change: ClusterChange,
        *,
        orchestrator: PhaseOrchestrator | None = None,
    ) -> Cluster:
        """Apply ``change`` phase by phase and return the refreshed cluster."""

        current = self.read(cluster_id, operation="update cluster")
        phases = self.plan_update(current, change)
        if not phases:
            log.info("Cluster %s already matches the requested state", cluster_id)
            return current

        runner = orchestrator or PhaseOrchestrator(waiter=self.waiter)
        completed = runner.run(
            cluster_id,
            phases,
            read_label=lambda: self.read(cluster_id, operation="update cluster").status,
            initial_label=current.status,
        )
        log.info("Cluster %s updated: %s", cluster_id, ", ".join(completed))
        return self.read(cluster_id, operation="update cluster")

    def delete(self, cluster_id: str) -> None:
        try:
            self.api.delete_cluster(cluster_id)
        except RemoteAPIError as exc:
            if is_not_found(exc):
                log.info("Cluster %s is already gone", cluster_id)
                return
            raise MutationError(
                object_id=cluster_id, operation="delete cluster", cause=exc
            ) from exc

        spec = WaitSpec(
            refresh=self.refresh(cluster_id, operation="delete cluster"),
            pending=frozenset(
                {ClusterStatus.RECONCILING, ClusterStatus.RUNNING, ClusterStatus.DELETING}
            ),
            target=frozenset({ClusterStatus.DELETED}),
            timeout=self.timeouts.delete,
            initial_delay=self.timeouts.delete_delay,
            poll_interval=self.timeouts.delete_poll_interval,
            object_id=cluster_id,
            operation="become deleted",
        )
        self.waiter.wait(spec)

    def _attribute_phase(
        self, cluster_id: str, name: str, mutate: Callable[[], object]
    ) -> Phase[ClusterStatus]:
        return Phase(
            name=name,
            applies=lambda status: status is ClusterStatus.RUNNING,
            mutate=mutate,
            wait=self.settle_spec(
                cluster_id,
                operation=f"finish {name}",
                pending=frozenset({ClusterStatus.RECONCILING}),
                target=frozenset({ClusterStatus.RUNNING}),
            ),
        )

    def _power_phase(self, cluster_id: str, desired: ClusterStatus) -> Phase[ClusterStatus]:
        action = _POWER_ACTIONS[desired]
        turning_on = desired is ClusterStatus.RUNNING
        opposite = ClusterStatus.SHUTOFF if turning_on else ClusterStatus.RUNNING
        return Phase(
            name=f"turn {'on' if turning_on else 'off'} cluster",
            applies=lambda status: status in POWER_STATUSES,
            mutate=lambda: self.api.switch_state(cluster_id, action=action),
            wait=self.settle_spec(
                cluster_id,
                operation=f"become {desired}",
                pending=frozenset({opposite, ClusterStatus.RECONCILING}),
                target=frozenset({desired}),
            ),
        )


def _attribute_patches(current: Cluster, change: ClusterChange) -> list[ClusterPatch]:
    patches: list[ClusterPatch] = []
    if change.labels is not None:
        merged = {**current.labels, **change.labels}
        if merged != current.labels:
            patches.append(ClusterPatch(path="/labels", value=merged))
    sync = change.security_policy_sync
    if sync is not None and sync != current.security_policy_sync:
        patches.append(ClusterPatch(path="/security_policy_sync_enabled", value=sync))
    return patches


__all__ = ["MUTABLE_STATUSES", "ClusterChange", "ClusterOperations"]
