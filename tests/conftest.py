"""Pytest fixtures for CDK construct and asset publisher tests."""

from pathlib import Path

import aws_cdk as cdk
import pytest

from fakes import FakeObjectStore


@pytest.fixture
def app() -> cdk.App:
  """Create a CDK App for testing."""
  return cdk.App()


@pytest.fixture
def stack(app: cdk.App) -> cdk.Stack:
  """Create a CDK Stack for testing."""
  return cdk.Stack(app, "TestStack", env=cdk.Environment(region="us-east-1"))


@pytest.fixture
def store() -> FakeObjectStore:
  """Create an empty in-memory object store."""
  return FakeObjectStore()


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
  """Create build/public with index.html and css/app.css."""
  root = tmp_path / "build" / "public"
  (root / "css").mkdir(parents=True)
  (root / "index.html").write_text("<!doctype html><title>Home</title>")
  (root / "css" / "app.css").write_text("body { margin: 0; }")
  return root
