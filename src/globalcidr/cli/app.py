# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/cli/app.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
import yaml
from kubernetes.config import ConfigException

from globalcidr.allocation.orchestrator import CIDRAllocator, JoinRequest
from globalcidr.config.loader import load_config
from globalcidr.config.models import GlobalCIDRConfig
from globalcidr.errors import GlobalCIDRError, RegistryNotFoundError
from globalcidr.logging.log import init_logging
from globalcidr.observers.console import ConsoleObserver
from globalcidr.observers.dispatcher import EventBus
from globalcidr.observers.logger import LoggerObserver
from globalcidr.registry.bootstrap import ensure_registry, new_registry, validate_existing_registry
from globalcidr.registry.features import get_feature
from globalcidr.store.backend import RecordBackend
from globalcidr.store.registry_store import RegistryStore


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Global CIDR allocation for multi-cluster meshes")

ConfigOpt = typer.Option(None, "--config", "-c", help="globalcidr YAML config")
FeatureOpt = typer.Option("globalnet", "--feature", "-f", help="globalnet or clustersetip")
NamespaceOpt = typer.Option(None, "--namespace", "-n", help="Broker namespace (overrides config)")
ContextOpt = typer.Option(None, "--context", help="Kubernetes context (overrides config)")
VerboseOpt = typer.Option(False, "--verbose", "-v")


def _backend(cfg: GlobalCIDRConfig) -> RecordBackend:
    from globalcidr.store.configmap import ConfigMapBackend

    return ConfigMapBackend.from_kubeconfig(kube_context=cfg.context, kubeconfig=cfg.kubeconfig)


def _setup(config: Optional[Path], feature: str, namespace: Optional[str], context: Optional[str], verbose: bool):
    logger, run_id, log_path = init_logging(verbose=verbose)
    try:
        cfg = load_config(config)
        feat = get_feature(feature)
    except (ValueError, OSError, yaml.YAMLError) as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    if context:
        cfg.context = context
    ns = namespace or cfg.namespace
    try:
        backend = _backend(cfg)
    except ConfigException as e:
        typer.secho(f"Unable to load Kubernetes configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    store = RegistryStore(backend, feat)
    bus = EventBus([LoggerObserver(logger), ConsoleObserver()])
    logger.debug(f"feature={feat.name} namespace={ns} context={cfg.context} log_file={log_path}")
    return cfg, store, bus, ns, run_id


def _fail(e: Exception) -> None:
    typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def init(
    config: Optional[Path] = ConfigOpt,
    feature: str = FeatureOpt,
    namespace: Optional[str] = NamespaceOpt,
    context: Optional[str] = ContextOpt,
    cidr: Optional[str] = typer.Option(None, "--cidr", help="Pool CIDR range"),
    size: Optional[int] = typer.Option(None, "--size", help="Default addresses per cluster"),
    disabled: bool = typer.Option(False, "--disabled", help="Create the registry with the feature disabled"),
    verbose: bool = VerboseOpt,
):
    """Create the feature's registry on the broker unless it already exists."""
    cfg, store, bus, ns, run_id = _setup(config, feature, namespace, context, verbose)
    fc = cfg.feature(store.feature.name)

    try:
        registry = new_registry(
            enabled=fc.enabled and not disabled,
            cidr=cidr or fc.cidr,
            allocation_size=size or fc.allocation_size,
        )
        created = ensure_registry(store, ns, registry, bus=bus, run_id=run_id)
    except GlobalCIDRError as e:
        _fail(e)

    if created:
        typer.echo(f"Created {store.feature.name} registry in {ns}")
    else:
        typer.echo(f"{store.feature.name} registry already exists in {ns} - left unchanged")


@app.command()
def join(
    cluster_id: str = typer.Argument(..., help="ID of the joining cluster"),
    config: Optional[Path] = ConfigOpt,
    feature: str = FeatureOpt,
    namespace: Optional[str] = NamespaceOpt,
    context: Optional[str] = ContextOpt,
    cidr: str = typer.Option("", "--cidr", help="Request a specific CIDR"),
    size: int = typer.Option(0, "--size", help="Request a block size (addresses)"),
    verbose: bool = VerboseOpt,
):
    """Allocate (or confirm) the joining cluster's CIDR."""
    cfg, store, bus, ns, run_id = _setup(config, feature, namespace, context, verbose)
    typer.echo(f"Retrieving {store.feature.name} information from the broker in {ns}")

    allocator = CIDRAllocator(store, retries=cfg.retries, bus=bus, run_id=run_id)
    try:
        result = allocator.allocate_cidr(ns, JoinRequest(cluster_id=cluster_id, requested_cidr=cidr, requested_size=size))
    except GlobalCIDRError as e:
        _fail(e)

    if not result.enabled:
        typer.echo(f"{store.feature.name} is not enabled on the broker")
        return
    typer.echo(result.cidr)


@app.command()
def show(
    config: Optional[Path] = ConfigOpt,
    feature: str = FeatureOpt,
    namespace: Optional[str] = NamespaceOpt,
    context: Optional[str] = ContextOpt,
    as_json: bool = typer.Option(False, "--json"),
    verbose: bool = VerboseOpt,
):
    """Print the feature's registry."""
    cfg, store, bus, ns, run_id = _setup(config, feature, namespace, context, verbose)
    try:
        registry, version = store.get(ns)
    except GlobalCIDRError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(registry.model_dump(by_alias=True), indent=2))
        return

    typer.echo(f"{store.feature.name} ({ns}, version {version}): {'enabled' if registry.enabled else 'disabled'}")
    if registry.pool:
        typer.echo(f"  pool: {registry.pool.cidr}  allocation size: {registry.pool.allocation_size}")
    for cid, entry in registry.clusters.items():
        typer.echo(f"  {cid}: {', '.join(entry.cidrs) or '-'}")


@app.command()
def validate(
    config: Optional[Path] = ConfigOpt,
    feature: str = FeatureOpt,
    namespace: Optional[str] = NamespaceOpt,
    context: Optional[str] = ContextOpt,
    verbose: bool = VerboseOpt,
):
    """Check the pool of an existing registry."""
    cfg, store, bus, ns, run_id = _setup(config, feature, namespace, context, verbose)
    try:
        registry = validate_existing_registry(store, ns)
    except GlobalCIDRError as e:
        _fail(e)

    if registry is None:
        typer.echo(f"No {store.feature.name} registry in {ns}")
    else:
        typer.echo(f"{store.feature.name} registry in {ns} is valid")


@app.command()
def delete(
    config: Optional[Path] = ConfigOpt,
    feature: str = FeatureOpt,
    namespace: Optional[str] = NamespaceOpt,
    context: Optional[str] = ContextOpt,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    verbose: bool = VerboseOpt,
):
    """Tear down the feature's registry. Allocations are lost."""
    cfg, store, bus, ns, run_id = _setup(config, feature, namespace, context, verbose)
    if not yes:
        typer.confirm(f"Delete the {store.feature.name} registry in {ns}?", abort=True)
    try:
        store.delete(ns)
    except RegistryNotFoundError:
        typer.echo(f"No {store.feature.name} registry in {ns}")
        return
    except GlobalCIDRError as e:
        _fail(e)
    typer.echo(f"Deleted {store.feature.name} registry in {ns}")


def main():
    app()


if __name__ == "__main__":
    main()
