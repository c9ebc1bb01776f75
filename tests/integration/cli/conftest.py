"""Shared fixtures for CLI integration tests"""

import pytest
from typer.testing import CliRunner


KVM_V1 = "---\ntitle: KVM\ndate: 2024-03-05\ntags: [kvm, linux]\ncategories: [Virtualization]\n---\nFirst draft.\n"
KVM_V2 = "---\ntitle: KVM\ndate: 2024-03-05\ntags: [kvm, linux]\ncategories: [Virtualization]\n---\nRewritten.\n"


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


@pytest.fixture(name="site_dir")
def site_dir_fixture(tmp_path, monkeypatch):
    """Working directory with content/post/kvm.md and content/about.md and an isolated database."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SITEPUB_DB_URL", f"sqlite:///{tmp_path}/test.db")
    content = tmp_path / "content"
    (content / "post").mkdir(parents=True)
    (content / "post" / "kvm.md").write_text(KVM_V1)
    (content / "about.md").write_text("---\ntitle: About\n---\nAbout this site.\n")
    return tmp_path


@pytest.fixture(name="kvm_v1")
def kvm_v1_fixture():
    return KVM_V1


@pytest.fixture(name="kvm_v2")
def kvm_v2_fixture():
    return KVM_V2
