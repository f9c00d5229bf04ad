"""
Validator Pod Metadata

Helpers to build the pods the validator launches and to carry the owning
DaemonSet's pod template labels and annotations over to them, so that
custom scheduling and observability metadata set on the validator
DaemonSet also lands on the pods it creates.
"""

import logging
from typing import List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException


logger = logging.getLogger(__name__)


APP_LABEL = 'app'
PART_OF_LABEL = 'app.kubernetes.io/part-of'
PART_OF_VALUE = 'gpu-operator'

# Identity labels owned by the validator pod itself, never copied from the template
PROTECTED_LABELS = frozenset({APP_LABEL, PART_OF_LABEL})


def _template_metadata(daemonset: Optional[client.V1DaemonSet]) -> Optional[client.V1ObjectMeta]:
    if daemonset is None or daemonset.spec is None or daemonset.spec.template is None:
        return None
    return daemonset.spec.template.metadata


def apply_daemonset_metadata_to_pod(pod: client.V1Pod, daemonset: Optional[client.V1DaemonSet]) -> None:
    """
    Copy the DaemonSet pod template labels and annotations onto a pod.

    The 'app' and 'app.kubernetes.io/part-of' labels are skipped so the pod
    keeps its own values for them. Annotations are copied as-is. Label and
    annotation maps are only created on the pod when there is something to
    add. The DaemonSet is not modified.

    Args:
        pod: Pod to update in place
        daemonset: DaemonSet owning the validator
    """
    template_meta = _template_metadata(daemonset)
    if template_meta is None:
        return

    template_labels = template_meta.labels or {}
    template_annotations = template_meta.annotations or {}
    if not template_labels and not template_annotations:
        return

    if pod.metadata is None:
        pod.metadata = client.V1ObjectMeta()

    for key, value in template_labels.items():
        if key in PROTECTED_LABELS:
            logger.debug(f"Skipping protected label {key} from DaemonSet template")
            continue
        if pod.metadata.labels is None:
            pod.metadata.labels = {}
        pod.metadata.labels[key] = value

    for key, value in template_annotations.items():
        if pod.metadata.annotations is None:
            pod.metadata.annotations = {}
        pod.metadata.annotations[key] = value


def new_validation_pod(
    name: str,
    namespace: str,
    app: str,
    node_name: str,
    containers: List[client.V1Container],
    daemonset: Optional[client.V1DaemonSet] = None
) -> client.V1Pod:
    """
    Build a validation workload pod.

    Args:
        name: Pod name
        namespace: Namespace the pod is created in
        app: Value of the pod's 'app' label
        node_name: Node the pod is pinned to
        containers: Containers running the validation workload
        daemonset: Owning DaemonSet whose template metadata is applied

    Returns:
        Pod object, not yet created in the cluster

    Raises:
        ValueError: If no containers are given
    """
    if not containers:
        raise ValueError(f"validation pod {namespace}/{name} needs at least one container")
    pod = client.V1Pod(
        api_version='v1',
        kind='Pod',
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            labels={
                APP_LABEL: app,
                PART_OF_LABEL: PART_OF_VALUE,
            },
        ),
        spec=client.V1PodSpec(
            containers=containers,
            node_name=node_name,
            restart_policy='OnFailure',
        ),
    )
    if daemonset is not None:
        apply_daemonset_metadata_to_pod(pod, daemonset)
    return pod


def read_owner_daemonset(apps_v1: client.AppsV1Api, namespace: str, name: str) -> client.V1DaemonSet:
    """
    Fetch the DaemonSet owning the validator.

    Raises:
        ApiException: If the DaemonSet cannot be read
    """
    try:
        daemonset = apps_v1.read_namespaced_daemon_set(name, namespace)
        logger.info(f"Fetched owner DaemonSet {namespace}/{name}")
        return daemonset
    except ApiException as e:
        logger.error(f"Failed to read DaemonSet {namespace}/{name}: {e}")
        raise
