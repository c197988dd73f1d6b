"""Drives resource providers to converge the desired graph."""

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from .errors import DependencyNotReady, ReconcileError
from .provider import Resource, ResourceProvider

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
SAME = "same"
DELETE = "delete"


@dataclass
class ReconcileSummary:
  """What a run did, per resource name."""

  created: list[str] = field(default_factory=list)
  updated: list[str] = field(default_factory=list)
  unchanged: list[str] = field(default_factory=list)
  deleted: list[str] = field(default_factory=list)
  failures: dict[str, BaseException] = field(default_factory=dict)
  skipped: list[str] = field(default_factory=list)

  @property
  def ok(self) -> bool:
    return not self.failures and not self.skipped

  def record(self, name: str, action: str) -> None:
    {
      CREATE: self.created,
      UPDATE: self.updated,
      SAME: self.unchanged,
      DELETE: self.deleted,
    }[action].append(name)


def topological_layers(nodes: dict[str, list[str]]) -> list[list[str]]:
  """Group names so every name comes after all of its dependencies.

  Raises:
    ValueError: On unknown dependencies or cycles
  """
  for name, deps in nodes.items():
    unknown = [d for d in deps if d not in nodes]
    if unknown:
      raise ValueError(f"{name} depends on undeclared resources: {', '.join(unknown)}")

  remaining = {name: set(deps) for name, deps in nodes.items()}
  layers: list[list[str]] = []
  while remaining:
    layer = sorted(name for name, deps in remaining.items() if not deps)
    if not layer:
      raise ValueError(f"Dependency cycle among: {', '.join(sorted(remaining))}")
    layers.append(layer)
    for name in layer:
      del remaining[name]
    for deps in remaining.values():
      deps.difference_update(layer)
  return layers


class Reconciler:
  """Converges resources against the state recorded by previous runs.

  Resources in the same dependency layer run concurrently. A resource whose
  dependency failed is skipped rather than attempted. Resources present in
  the state but no longer declared are deleted, dependents first.
  """

  def __init__(
    self,
    resources: Iterable[Resource],
    state: dict[str, dict[str, Any]] | None = None,
    *,
    providers: Iterable[ResourceProvider] = (),
    max_workers: int = 8,
  ) -> None:
    self.resources: dict[str, Resource] = {}
    for resource in resources:
      if resource.name in self.resources:
        raise ValueError(f"Duplicate resource name: {resource.name}")
      self.resources[resource.name] = resource
    self.state: dict[str, dict[str, Any]] = dict(state or {})
    self.max_workers = max_workers

    self.providers: dict[str, ResourceProvider] = {p.type_name: p for p in providers}
    for resource in self.resources.values():
      self.providers.setdefault(resource.provider.type_name, resource.provider)

    self._ready: set[str] = set()
    self._lock = threading.Lock()

  def _stale(self) -> list[str]:
    return sorted(name for name in self.state if name not in self.resources)

  def preview(self) -> dict[str, str]:
    """Planned action per resource, without touching the remote store."""
    plan: dict[str, str] = {}
    for name, resource in self.resources.items():
      entry = self.state.get(name)
      if entry is None:
        plan[name] = CREATE
        continue
      olds = resource.provider.load_outs(entry.get("outs") or {})
      result = resource.provider.diff(entry["id"], olds, resource.inputs)
      plan[name] = UPDATE if result.changes else SAME
    for name in self._stale():
      plan[name] = DELETE
    return plan

  def converge(self, resource: Resource) -> str:
    """Create, update or keep a single resource.

    Raises:
      DependencyNotReady: If a dependency has not converged in this run
    """
    with self._lock:
      missing = [d for d in resource.dependency_names if d not in self._ready]
      entry = self.state.get(resource.name)
    if missing:
      raise DependencyNotReady(resource.name, missing)

    provider = resource.provider
    if entry is None:
      created = provider.create(resource.inputs)
      action, id, outs = CREATE, created.id, created.outs
    else:
      id = entry["id"]
      olds = provider.load_outs(entry.get("outs") or {})
      result = provider.diff(id, olds, resource.inputs)
      if result.changes:
        logger.debug("%s changed: %s", resource.name, result.reason)
        outs = provider.update(id, olds, resource.inputs).outs
        action = UPDATE
      else:
        outs, action = olds, SAME

    with self._lock:
      self.state[resource.name] = {
        "type": provider.type_name,
        "id": id,
        "depends_on": resource.dependency_names,
        "outs": provider.dump_outs(outs),
      }
      self._ready.add(resource.name)
    return action

  def delete(self, name: str) -> None:
    """Delete a resource recorded in the state and forget it.

    Raises:
      DependencyNotReady: If a recorded dependency is still declared but has
        not converged in this run
    """
    with self._lock:
      entry = self.state[name]
      missing = [
        d for d in entry.get("depends_on", []) if d in self.resources and d not in self._ready
      ]
    if missing:
      raise DependencyNotReady(name, missing)
    provider = self.providers.get(entry.get("type", ""))
    if provider is None:
      raise ValueError(f"No provider registered for {name} of type {entry.get('type')!r}")

    provider.delete(entry["id"], provider.load_outs(entry.get("outs") or {}))
    with self._lock:
      del self.state[name]

  def _delete_stale(self, name: str) -> str:
    self.delete(name)
    return DELETE

  def _run_layer(
    self,
    names: list[str],
    work: Callable[[str], str],
    summary: ReconcileSummary,
    blocked: set[str],
  ) -> None:
    with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
      futures = {name: pool.submit(work, name) for name in names}
    for name, future in futures.items():
      error = future.exception()
      if error is None:
        summary.record(name, future.result())
      else:
        logger.error("%s failed: %s", name, error)
        summary.failures[name] = error
        blocked.add(name)

  def up(self) -> ReconcileSummary:
    """Converge every declared resource and delete stale ones.

    Raises:
      ReconcileError: If any resource failed or was skipped; `self.state`
        still reflects everything that did converge
    """
    summary = ReconcileSummary()
    blocked: set[str] = set()

    graph = {name: r.dependency_names for name, r in self.resources.items()}
    for layer in topological_layers(graph):
      runnable: list[str] = []
      for name in layer:
        if any(dep in blocked for dep in graph[name]):
          summary.skipped.append(name)
          blocked.add(name)
        else:
          runnable.append(name)
      self._run_layer(
        runnable,
        lambda n: self.converge(self.resources[n]),
        summary,
        blocked,
      )

    stale = self._stale()
    recorded = {name: self.state[name].get("depends_on", []) for name in stale}
    stale_graph = {name: [d for d in deps if d in stale] for name, deps in recorded.items()}
    for layer in reversed(topological_layers(stale_graph)):
      runnable = []
      for name in layer:
        waiting = [
          d
          for d in recorded[name]
          if d in blocked or (d in self.resources and d not in self._ready)
        ]
        # A dependent that is still recorded keeps its dependencies
        held = any(name in recorded[other] and other in blocked for other in stale)
        if waiting or held:
          summary.skipped.append(name)
          blocked.add(name)
        else:
          runnable.append(name)
      self._run_layer(runnable, self._delete_stale, summary, blocked)

    logger.info(
      "Converged: %d created, %d updated, %d unchanged, %d deleted, %d failed",
      len(summary.created),
      len(summary.updated),
      len(summary.unchanged),
      len(summary.deleted),
      len(summary.failures),
    )
    if not summary.ok:
      raise ReconcileError(summary.failures, summary.skipped)
    return summary
