import logging

from gpufeatures.kube import get_kubernetes_namespace, node_name


def test_node_name_from_environment(monkeypatch):
    monkeypatch.setenv("NODE_NAME", "worker-a")
    assert node_name() == "worker-a"


def test_node_name_unset(monkeypatch):
    monkeypatch.delenv("NODE_NAME", raising=False)
    assert node_name() == ""


def test_namespace_read_from_file(tmp_path, monkeypatch):
    monkeypatch.setenv("KUBERNETES_NAMESPACE", "from-env")
    ns_file = tmp_path / "namespace"
    ns_file.write_text("  gpu-operator\n")
    assert get_kubernetes_namespace(ns_file) == "gpu-operator"


def test_namespace_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("KUBERNETES_NAMESPACE", "from-env")
    assert get_kubernetes_namespace(tmp_path / "missing") == "from-env"


def test_namespace_unknown_logs_warning(tmp_path, monkeypatch, caplog):
    monkeypatch.delenv("KUBERNETES_NAMESPACE", raising=False)
    with caplog.at_level(logging.WARNING):
        assert get_kubernetes_namespace(tmp_path / "missing") == ""
    assert "KUBERNETES_NAMESPACE environment variable not set" in caplog.text