# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/store/configmap.py
from __future__ import annotations

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..errors import (
    RegistryConflictError,
    RegistryExistsError,
    RegistryNotFoundError,
    StoreError,
)
from .backend import VersionedRecord

log = logging.getLogger("globalcidr")


def _translate(exc: ApiException, action: str, namespace: str, name: str) -> StoreError:
    where = f"ConfigMap {namespace}/{name}"
    if exc.status == 404:
        return RegistryNotFoundError(f"{where} not found", namespace=namespace, name=name)
    if exc.status == 409 and action == "create":
        return RegistryExistsError(f"{where} already exists", namespace=namespace, name=name)
    if exc.status == 409:
        return RegistryConflictError(
            f"conflict updating {where}: {exc.reason}", namespace=namespace, name=name
        )
    return StoreError(
        f"error during {action} of {where}: {exc.status} {exc.reason}",
        namespace=namespace,
        name=name,
    )


class ConfigMapBackend:
    """
    RecordBackend over Kubernetes ConfigMaps.

    The ConfigMap's resourceVersion is the version token. Updates send it
    back with the object, so the API server rejects a stale write with 409.
    """

    def __init__(self, api: Optional[client.CoreV1Api] = None):
        self.api = api or client.CoreV1Api()

    @classmethod
    def from_kubeconfig(
        cls,
        kube_context: Optional[str] = None,
        kubeconfig: Optional[str] = None,
    ) -> "ConfigMapBackend":
        if kube_context or kubeconfig:
            config.load_kube_config(config_file=kubeconfig, context=kube_context)
        else:
            try:
                config.load_incluster_config()
            except config.ConfigException:
                config.load_kube_config()
        return cls(client.CoreV1Api())

    @staticmethod
    def _to_record(cm: client.V1ConfigMap) -> VersionedRecord:
        meta = cm.metadata
        return VersionedRecord(
            name=meta.name,
            namespace=meta.namespace,
            data=dict(cm.data or {}),
            version=meta.resource_version,
            labels=dict(meta.labels or {}),
        )

    @staticmethod
    def _to_body(record: VersionedRecord) -> client.V1ConfigMap:
        return client.V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=client.V1ObjectMeta(
                name=record.name,
                namespace=record.namespace,
                labels=record.labels or None,
                resource_version=record.version,
            ),
            data=dict(record.data),
        )

    def get(self, namespace: str, name: str) -> VersionedRecord:
        try:
            cm = self.api.read_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as e:
            raise _translate(e, "read", namespace, name) from e
        return self._to_record(cm)

    def create(self, record: VersionedRecord) -> VersionedRecord:
        body = self._to_body(record)
        body.metadata.resource_version = None
        try:
            cm = self.api.create_namespaced_config_map(namespace=record.namespace, body=body)
        except ApiException as e:
            raise _translate(e, "create", record.namespace, record.name) from e
        log.debug("created ConfigMap %s/%s", record.namespace, record.name)
        return self._to_record(cm)

    def update(self, record: VersionedRecord) -> VersionedRecord:
        if not record.version:
            raise StoreError(
                f"refusing to update ConfigMap {record.namespace}/{record.name} without a resourceVersion",
                namespace=record.namespace,
                name=record.name,
            )
        try:
            cm = self.api.replace_namespaced_config_map(
                name=record.name, namespace=record.namespace, body=self._to_body(record)
            )
        except ApiException as e:
            raise _translate(e, "update", record.namespace, record.name) from e
        return self._to_record(cm)

    def delete(self, namespace: str, name: str) -> None:
        try:
            self.api.delete_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as e:
            raise _translate(e, "delete", namespace, name) from e
