"""Subresource-integrity style content digests."""

import base64
import hashlib
import re
from dataclasses import dataclass

DEFAULT_ALGORITHM = "sha512"

# Strongest first; used to pick the algorithm when comparing.
SUPPORTED_ALGORITHMS = ("sha512", "sha384", "sha256")

_ENTRY_RE = re.compile(r"^(sha512|sha384|sha256)-([A-Za-z0-9+/]+={0,2})(\?.*)?$")


@dataclass(frozen=True)
class Integrity:
  """Set of `algorithm -> base64 digest` pairs, e.g. `sha512-...`."""

  hashes: tuple[tuple[str, str], ...]

  @classmethod
  def from_data(cls, data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> "Integrity":
    """Hash a byte buffer."""
    if algorithm not in SUPPORTED_ALGORITHMS:
      raise ValueError(f"Unsupported integrity algorithm: {algorithm}")
    digest = hashlib.new(algorithm, data).digest()
    return cls(hashes=((algorithm, base64.b64encode(digest).decode("ascii")),))

  @classmethod
  def parse(cls, value: str) -> "Integrity":
    """Parse a whitespace-separated SRI string.

    Raises:
      ValueError: If the string is empty or any entry is malformed
    """
    if not isinstance(value, str):
      raise ValueError(f"Integrity must be a string, got {type(value).__name__}")

    hashes: list[tuple[str, str]] = []
    for entry in value.split():
      match = _ENTRY_RE.match(entry)
      if match is None:
        raise ValueError(f"Malformed integrity entry: {entry!r}")
      algorithm, digest = match.group(1), match.group(2)
      try:
        raw = base64.b64decode(digest, validate=True)
      except ValueError as e:
        raise ValueError(f"Malformed integrity digest: {entry!r}") from e
      if len(raw) != hashlib.new(algorithm).digest_size:
        raise ValueError(f"Wrong digest length for {algorithm}: {entry!r}")
      hashes.append((algorithm, digest))

    if not hashes:
      raise ValueError("Empty integrity string")
    return cls(hashes=tuple(hashes))

  def pick_algorithm(self, other: "Integrity") -> str | None:
    """Strongest algorithm present in both integrities."""
    mine = {alg for alg, _ in self.hashes}
    theirs = {alg for alg, _ in other.hashes}
    for algorithm in SUPPORTED_ALGORITHMS:
      if algorithm in mine and algorithm in theirs:
        return algorithm
    return None

  def match(self, other: "Integrity") -> bool:
    """True if both were computed from identical content."""
    algorithm = self.pick_algorithm(other)
    if algorithm is None:
      return False
    mine = {digest for alg, digest in self.hashes if alg == algorithm}
    theirs = {digest for alg, digest in other.hashes if alg == algorithm}
    return bool(mine & theirs)

  def __str__(self) -> str:
    return " ".join(f"{alg}-{digest}" for alg, digest in self.hashes)


def match(a: Integrity, b: Integrity) -> bool:
  """Compare two integrities."""
  return a.match(b)


def matches(stored: str | None, current: Integrity) -> bool:
  """Compare a stored integrity string against a freshly computed one.

  A missing or unparseable stored value never matches.
  """
  if not stored:
    return False
  try:
    parsed = Integrity.parse(stored)
  except ValueError:
    return False
  return parsed.match(current)
