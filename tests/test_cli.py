import json

import pytest
import responses
import yaml

from helpers import (
    CHILD_PORT_ID,
    CHILD_PORT_URL,
    LIST_URL,
    PORT_ID,
    PORT_URL,
    SEGMENT_ID,
    SERVER,
    SESSION_URL,
    child_port,
    nsx_port_payload,
    parent_port,
)
from nsxt_intervlan_routing.cli import main

LOGIN_HEADERS = {
    "Set-Cookie": "JSESSIONID=2A4F9C0E11; Path=/; Secure; HttpOnly",
    "x-xsrf-token": "52a9c3f0-xsrf",
}

CONNECTION = ["--host", SERVER, "--username", "admin", "--password", "secret"]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("NSXT_INSECURE", "NSXT_HOSTNAME", "NSXT_USERNAME", "NSXT_PASSWORD"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "ports.yaml"
    path.write_text(yaml.safe_dump({
        "provider": {"host": SERVER, "username": "admin", "password": "secret", "insecure": False},
        "segment_ports": [
            {"segment_id": SEGMENT_ID, "port_id": PORT_ID, "segment_port": parent_port().to_dict()},
            {"segment_id": SEGMENT_ID, "port_id": CHILD_PORT_ID, "segment_port": child_port().to_dict()},
        ],
    }))
    return path


def login():
    responses.add(responses.POST, SESSION_URL, status=200, headers=LOGIN_HEADERS)


def test_validate_ok(config_file, capsys):
    assert main(["validate", "--config", str(config_file)]) == 0
    assert "[OK] Validation passed (2 segment port(s))" in capsys.readouterr().out


def test_validate_reports_errors(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("segment_ports:\n  - segment_id: s1\n")

    assert main(["validate", "--config", str(path)]) == 1
    assert "[ERROR]" in capsys.readouterr().err


@responses.activate
def test_apply_creates_missing_and_updates_existing(config_file, capsys):
    login()
    responses.add(responses.GET, PORT_URL, status=404)
    responses.add(responses.GET, CHILD_PORT_URL, json=nsx_port_payload(child_port()), status=200)
    responses.add(responses.PATCH, PORT_URL, status=200)
    responses.add(responses.PATCH, CHILD_PORT_URL, status=200)

    assert main(["apply", "--config", str(config_file)]) == 0

    out = capsys.readouterr().out
    assert f"Created {SEGMENT_ID}/{PORT_ID}" in out
    assert f"Updated {SEGMENT_ID}/{CHILD_PORT_ID}" in out
    patches = [c.request for c in responses.calls if c.request.method == "PATCH"]
    assert [json.loads(p.body) for p in patches] == [parent_port().to_dict(), child_port().to_dict()]


@responses.activate
def test_apply_stops_when_login_fails(config_file, capsys):
    responses.add(responses.POST, SESSION_URL, status=401)

    assert main(["apply", "--config", str(config_file)]) == 1
    assert "non-200 status code" in capsys.readouterr().err
    assert len(responses.calls) == 1


@responses.activate
def test_get_prints_yaml(capsys):
    login()
    responses.add(responses.GET, PORT_URL, json=nsx_port_payload(parent_port()), status=200)

    assert main(["get", *CONNECTION, "--segment-id", SEGMENT_ID, "--port-id", PORT_ID]) == 0

    printed = yaml.safe_load(capsys.readouterr().out)
    assert printed["segment_port"]["display_name"] == "web-01"


@responses.activate
def test_get_missing_port(capsys):
    login()
    responses.add(responses.GET, PORT_URL, status=404)

    assert main(["get", *CONNECTION, "--segment-id", SEGMENT_ID, "--port-id", PORT_ID]) == 1
    assert "not found" in capsys.readouterr().err


@responses.activate
def test_import_reads_port_into_state(capsys):
    login()
    responses.add(responses.GET, PORT_URL, json=nsx_port_payload(parent_port()), status=200)

    assert main(["import", *CONNECTION, "--segment-id", SEGMENT_ID, PORT_ID]) == 0

    printed = yaml.safe_load(capsys.readouterr().out)
    assert printed["segment_ports"][0]["port_id"] == PORT_ID
    assert printed["segment_ports"][0]["segment_id"] == SEGMENT_ID


@responses.activate
def test_delete(capsys):
    login()
    responses.add(responses.DELETE, PORT_URL, status=200)

    assert main(["delete", *CONNECTION, "--segment-id", SEGMENT_ID, "--port-id", PORT_ID]) == 0
    assert responses.calls[1].request.method == "DELETE"


@responses.activate
def test_list_empty_segment(capsys):
    login()
    responses.add(responses.GET, LIST_URL, json={"result_count": 0, "results": []}, status=200)

    assert main(["list", *CONNECTION, "--segment-id", SEGMENT_ID]) == 0

    printed = yaml.safe_load(capsys.readouterr().out)
    assert printed == {"segment_id": SEGMENT_ID, "segment_ports": []}


@responses.activate
def test_export_writes_files(tmp_path, capsys):
    login()
    responses.add(
        responses.GET,
        LIST_URL,
        json={"result_count": 1, "results": [nsx_port_payload(parent_port())]},
        status=200,
    )

    code = main([
        "export", *CONNECTION, "--segment-id", SEGMENT_ID,
        "--output", str(tmp_path), "--generate-imports",
    ])

    assert code == 0
    assert (tmp_path / "segment_ports.yaml").exists()
    assert (tmp_path / "imports.tf").exists()
    assert "Exported 1 segment port(s)" in capsys.readouterr().out


def test_password_file_wins_over_flag(tmp_path):
    from nsxt_intervlan_routing.cli import build_parser, provider_config_from_args

    secret = tmp_path / "password.txt"
    secret.write_text("MyP@ssw0rd!\n")
    args = build_parser().parse_args([
        "list", "--segment-id", SEGMENT_ID, "--password", "flag", "--password-file", str(secret),
    ])

    config = provider_config_from_args(args, {"provider": {"host": "yaml-host", "password": "yaml"}})

    assert config.password == "MyP@ssw0rd!"
    assert config.host == "yaml-host"
    assert config.insecure is None


@responses.activate
def test_warnings_go_to_stderr_and_stdout_stays_yaml(capsys):
    login()
    responses.add(responses.GET, LIST_URL, json={"result_count": 0, "results": []}, status=200)

    assert main(["list", *CONNECTION, "--segment-id", SEGMENT_ID]) == 0

    captured = capsys.readouterr()
    assert "Missing NSX-T Manager API Insecure" in captured.err
    assert "Warnings" not in captured.out
    assert yaml.safe_load(captured.out) == {"segment_id": SEGMENT_ID, "segment_ports": []}


@pytest.mark.parametrize("flag,expected", [([], None), (["--insecure"], True), (["--no-insecure"], False)])
def test_insecure_flag_is_tri_state(flag, expected):
    from nsxt_intervlan_routing.cli import build_parser, provider_config_from_args

    args = build_parser().parse_args(["list", "--segment-id", SEGMENT_ID, *flag])

    config = provider_config_from_args(args, {"provider": {"insecure": True}})

    assert config.insecure is (True if expected is None else expected)


@responses.activate
def test_no_insecure_silences_the_default_warning(capsys):
    login()
    responses.add(responses.GET, LIST_URL, json={"result_count": 0, "results": []}, status=200)

    assert main(["list", *CONNECTION, "--no-insecure", "--segment-id", SEGMENT_ID]) == 0

    assert "Insecure" not in capsys.readouterr().err
