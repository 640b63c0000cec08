"""
Shared test configuration and fixtures for template-pdf.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

from template_pdf import Settings, Pipeline
from tests.utils.helpers import (
    SAMPLE_TEMPLATE, FakeRenderer, FakeVersionSource, build_zip, make_template
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def settings(temp_dir):
    """Settings pointing temporary files at the test directory."""
    return Settings(
        github_owner="example",
        github_repo="templates",
        sync_branch="master",
        process_access_token="process-token",
        chat_access_token="chat-token",
        temp_dir=temp_dir
    )


@pytest.fixture
def sample_template():
    """The password reset template used across tests."""
    return SAMPLE_TEMPLATE


@pytest.fixture
def version_source(sample_template):
    """Version source with two templates, three branches and an archive."""
    archive = build_zip([
        ("example-templates-abc123/", ""),
        ("example-templates-abc123/README.md", "# Templates"),
        ("example-templates-abc123/test/template.md", sample_template),
        ("example-templates-abc123/.hidden.md", "# Subject\nhidden"),
        ("example-templates-abc123/welcome.md", make_template("Welcome aboard", ["welcome"])),
        ("example-templates-abc123/logo.png", "not markdown"),
    ])
    return FakeVersionSource(
        files={
            "README.md": "# Templates",
            "test/template.md": sample_template,
            "welcome.md": make_template("Welcome aboard", ["welcome"]),
        },
        branches=["master", "develop", "feature/reset"],
        branch_files={
            ("test/template.md", "develop"): make_template("Reset your password", ["changepassword"]),
            ("test/template.md", "feature/reset"): make_template("Password help", ["changepassword", "beta"]),
        },
        archive=archive
    )


@pytest.fixture
def renderer(temp_dir):
    """Fake renderer writing PDFs into the test directory."""
    return FakeRenderer(temp_dir=temp_dir)


@pytest.fixture
def pipeline(version_source, renderer, settings):
    """Pipeline wired to in-memory collaborators."""
    return Pipeline(version_source, version_source, renderer, settings=settings)
