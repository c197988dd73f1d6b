"""JSON state file holding the observed outputs of every converged resource."""

import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

STATE_VERSION = 1


class StateFile:
  """Reads and atomically rewrites the publisher's state.

  Layout::

    {
      "version": 1,
      "updated_at": "...",
      "resources": {
        "<name>": {"type": "asset", "id": "css/app.css", "outs": {...}}
      }
    }
  """

  def __init__(self, path: Path | str) -> None:
    self.path = Path(path)

  def load(self) -> dict[str, dict[str, Any]]:
    if not self.path.exists():
      return {}
    with open(self.path) as f:
      data = json.load(f)
    if data.get("version") != STATE_VERSION:
      raise ValueError(
        f"Unsupported state file version {data.get('version')!r} in {self.path}"
      )
    resources: dict[str, dict[str, Any]] = data.get("resources", {})
    return resources

  def save(self, resources: dict[str, dict[str, Any]]) -> None:
    data = {
      "version": STATE_VERSION,
      "updated_at": datetime.now(UTC).isoformat(),
      "resources": dict(sorted(resources.items())),
    }
    self.path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
    try:
      with os.fdopen(fd, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
      os.replace(tmp_name, self.path)
    except BaseException:
      os.unlink(tmp_name)
      raise
