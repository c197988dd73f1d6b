"""Resource provider interface and the resource dependency graph."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CreateResult:
  """Identity and observed outputs of a newly created resource."""

  id: str
  outs: Any


@dataclass
class DiffResult:
  changes: bool
  reason: str = ""


@dataclass
class UpdateResult:
  outs: Any


class ResourceProvider(ABC):
  """Lifecycle callbacks the reconciler invokes for one kind of resource.

  `outs` objects are provider-specific and must round-trip through
  `dump_outs`/`load_outs` so they can be kept in the state file.
  """

  type_name: str = "resource"

  @abstractmethod
  def create(self, inputs: Any) -> CreateResult:
    """Bring an absent resource into existence."""

  @abstractmethod
  def diff(self, id: str, olds: Any, news: Any) -> DiffResult:
    """Decide whether the observed state differs from the desired inputs."""

  @abstractmethod
  def update(self, id: str, olds: Any, news: Any) -> UpdateResult:
    """Converge an existing resource onto the desired inputs."""

  @abstractmethod
  def delete(self, id: str, olds: Any) -> None:
    """Remove a resource that is no longer declared."""

  @abstractmethod
  def load_outs(self, data: dict[str, Any]) -> Any:
    """Rebuild outputs from their state-file form."""

  @abstractmethod
  def dump_outs(self, outs: Any) -> dict[str, Any]:
    """Serialize outputs for the state file."""


@dataclass(eq=False)
class Resource:
  """A node in the desired-state graph.

  `depends_on` lists the resources that must finish converging before this
  one may start.
  """

  name: str
  provider: ResourceProvider
  inputs: Any
  depends_on: list["Resource"] = field(default_factory=list)

  @property
  def dependency_names(self) -> list[str]:
    return [dep.name for dep in self.depends_on]
