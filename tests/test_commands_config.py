"""Unit tests for the config, get, post and whoami commands."""

import json

import httpx
from typer.testing import CliRunner

from ocmcli import __version__
from ocmcli.cli import app
from ocmcli.config import Config
from ocmcli.store import FileStore
from ocmcli.urls import DEFAULT_TOKEN_URL, DEFAULT_URL

runner = CliRunner()


def _write(path, **kwargs):
    FileStore(path).save(Config(**kwargs))


def _logged_in(path, make_token):
    _write(
        path,
        access_token=make_token("Bearer", 3600),
        url=DEFAULT_URL,
        token_url=DEFAULT_TOKEN_URL,
        client_id="cloud-services",
    )


# --- top level ---


def test_version():
    """Test the --version option."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands():
    """Test that every command is registered."""
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("login", "logout", "token", "config", "get", "post", "whoami"):
        assert command in result.output


# --- config get ---


def test_config_get_url(config_file):
    """Test reading a string variable."""
    _write(config_file, url="https://api.example.com")

    result = runner.invoke(app, ["config", "get", "url"])

    assert result.exit_code == 0
    assert result.output.strip() == "https://api.example.com"


def test_config_get_insecure(config_file):
    """Test that booleans are printed in lower case."""
    _write(config_file, insecure=True)

    result = runner.invoke(app, ["config", "get", "insecure"])

    assert result.output.strip() == "true"


def test_config_get_scopes(config_file):
    """Test the format of the scopes list."""
    _write(config_file, scopes=["openid", "api.ocm"])

    result = runner.invoke(app, ["config", "get", "scopes"])

    assert result.output.strip() == "[openid api.ocm]"


def test_config_get_without_config(config_file):
    """Test that a missing configuration prints an empty value."""
    result = runner.invoke(app, ["config", "get", "url"])

    assert result.exit_code == 0
    assert result.output.strip() == ""


def test_config_get_unknown_variable(config_file):
    """Test reading a variable that doesn't exist."""
    result = runner.invoke(app, ["config", "get", "colour"])

    assert result.exit_code == 1
    assert "Unknown setting" in result.output


def test_config_get_keyrings(memory_keyring):
    """Test listing the available keyrings."""
    result = runner.invoke(app, ["config", "get", "keyrings"])

    assert result.exit_code == 0
    assert "[memory]" in result.output


def test_config_get_corrupt_file(config_file):
    """Test that a corrupt file is reported."""
    config_file.parent.mkdir(parents=True)
    config_file.write_text("{broken")

    result = runner.invoke(app, ["config", "get", "url"])

    assert result.exit_code == 1
    assert "Can't load config file" in result.output


# --- config set ---


def test_config_set_string(config_file):
    """Test changing a string variable."""
    _write(config_file, url=DEFAULT_URL)

    result = runner.invoke(app, ["config", "set", "pager", "less"])

    assert result.exit_code == 0, result.output
    assert FileStore(config_file).load() == Config(url=DEFAULT_URL, pager="less")


def test_config_set_insecure(config_file):
    """Test that boolean literals are accepted for insecure."""
    _write(config_file, url=DEFAULT_URL)

    result = runner.invoke(app, ["config", "set", "insecure", "yes"])

    assert result.exit_code == 0, result.output
    assert FileStore(config_file).load().insecure is True


def test_config_set_insecure_invalid(config_file):
    """Test an insecure value that isn't a boolean."""
    _write(config_file, url=DEFAULT_URL)

    result = runner.invoke(app, ["config", "set", "insecure", "maybe"])

    assert result.exit_code == 1
    assert "Failed to set insecure: maybe" in result.output
    assert FileStore(config_file).load().insecure is False


def test_config_set_scopes_unsupported(config_file):
    """Test that scopes can't be changed with config set."""
    _write(config_file, url=DEFAULT_URL)

    result = runner.invoke(app, ["config", "set", "scopes", "openid"])

    assert result.exit_code == 1
    assert "Setting scopes is unsupported" in result.output


def test_config_set_unknown_variable(config_file):
    _write(config_file, url=DEFAULT_URL)

    result = runner.invoke(app, ["config", "set", "colour", "blue"])

    assert result.exit_code == 1
    assert "Unknown setting" in result.output


def test_config_set_without_config(config_file):
    """Test that config set requires an existing configuration."""
    result = runner.invoke(app, ["config", "set", "pager", "less"])

    assert result.exit_code == 1
    assert "Not logged in" in result.output
    assert not config_file.exists()


# --- config delete ---


def test_config_delete_requires_keyring(config_file):
    """Test that delete refuses to work on the config file."""
    result = runner.invoke(app, ["config", "delete"])

    assert result.exit_code == 1
    assert "isn't stored in a keyring" in result.output


def test_config_delete_from_keyring(memory_keyring):
    """Test that delete removes the keyring entry."""
    memory_keyring.entries[("RedHatSSO", "ocm")] = Config(user="alice").to_json()

    result = runner.invoke(app, ["config", "delete"])

    assert result.exit_code == 0, result.output
    assert memory_keyring.entries == {}


# --- get ---


def test_get_collection(config_file, make_token, mocker):
    """Test that aliases are expanded and the response is pretty printed."""
    _logged_in(config_file, make_token)
    get = mocker.patch(
        "ocmcli.connection.Connection.get",
        return_value=httpx.Response(200, json={"kind": "ClusterList", "items": []}),
    )

    result = runner.invoke(app, ["get", "clusters"])

    assert result.exit_code == 0, result.output
    get.assert_called_once_with("/api/clusters_mgmt/v1/clusters", params={}, headers={})
    assert '"kind": "ClusterList"' in result.output


def test_get_with_parameters(config_file, make_token, mocker):
    """Test that --parameter and --header are sent with the request."""
    _logged_in(config_file, make_token)
    get = mocker.patch(
        "ocmcli.connection.Connection.get",
        return_value=httpx.Response(200, json={"kind": "Cluster", "id": "abc"}),
    )

    result = runner.invoke(
        app,
        ["get", "cluster", "abc", "--parameter", "search=name like 'a%'", "--header", "X-Trace=1", "--single"],
    )

    assert result.exit_code == 0, result.output
    get.assert_called_once_with(
        "/api/clusters_mgmt/v1/clusters/abc",
        params={"search": "name like 'a%'"},
        headers={"X-Trace": "1"},
    )
    assert '{"kind":"Cluster","id":"abc"}' in result.output


def test_get_error_response(config_file, make_token, mocker):
    """Test that error responses are printed and fail the command."""
    _logged_in(config_file, make_token)
    mocker.patch(
        "ocmcli.connection.Connection.get",
        return_value=httpx.Response(404, json={"kind": "Error", "reason": "Cluster 'x' not found"}),
    )

    result = runner.invoke(app, ["get", "cluster", "x"])

    assert result.exit_code == 1
    assert "Cluster 'x' not found" in result.output


def test_get_resource_without_id(config_file, make_token):
    """Test an individual resource alias without an ID."""
    _logged_in(config_file, make_token)

    result = runner.invoke(app, ["get", "cluster"])

    assert result.exit_code == 1
    assert "Could not create URI" in result.output


def test_get_invalid_parameter(config_file, make_token):
    """Test a --parameter value without a separator."""
    _logged_in(config_file, make_token)

    result = runner.invoke(app, ["get", "clusters", "--parameter", "search"])

    assert result.exit_code == 2


def test_get_not_logged_in(config_file, mocker):
    """Test that get fails before sending anything without a login."""
    get = mocker.patch("ocmcli.connection.Connection.get")

    result = runner.invoke(app, ["get", "clusters"])

    assert result.exit_code == 1
    assert "Not logged in" in result.output
    get.assert_not_called()


def test_get_saves_refreshed_tokens(config_file, make_token, mocker):
    """Test that tokens renewed for the request are written back."""
    new_access = make_token("Bearer", 900)
    _write(
        config_file,
        access_token=make_token("Bearer", -300),
        refresh_token=make_token("Refresh", 36000),
        url=DEFAULT_URL,
        token_url=DEFAULT_TOKEN_URL,
    )
    mocker.patch(
        "ocmcli.connection.Connection.tokens",
        return_value=(new_access, make_token("Refresh", 36000)),
    )
    mocker.patch("ocmcli.connection.Connection.get", return_value=httpx.Response(200, json={}))

    result = runner.invoke(app, ["get", "clusters"])

    assert result.exit_code == 0, result.output
    assert FileStore(config_file).load().access_token == new_access


# --- whoami ---


def test_whoami(config_file, make_token, mocker):
    """Test that whoami prints the current account."""
    _logged_in(config_file, make_token)
    get = mocker.patch(
        "ocmcli.connection.Connection.get",
        return_value=httpx.Response(200, json={"kind": "Account", "username": "alice"}),
    )

    result = runner.invoke(app, ["whoami"])

    assert result.exit_code == 0, result.output
    get.assert_called_once_with("/api/accounts_mgmt/v1/current_account")
    assert json.dumps("alice") in result.output


def test_resource_completion():
    """Test shell completion of resource aliases."""
    from ocmcli.commands.get import _complete_resource

    assert _complete_resource("clu") == ["cluster", "clusters"]
    assert _complete_resource("zzz") == []


# --- post ---


def test_post_sends_body_file(config_file, make_token, mocker, tmp_path):
    """Test that the body file is sent as JSON to the expanded path."""
    _logged_in(config_file, make_token)
    body = tmp_path / "cluster.json"
    body.write_text('{"name": "demo", "region": {"id": "us-east-1"}}')
    post = mocker.patch(
        "ocmcli.connection.Connection.post",
        return_value=httpx.Response(201, json={"kind": "Cluster", "id": "abc"}),
    )

    result = runner.invoke(app, ["post", "clusters", "--body", str(body), "--parameter", "dry_run=true"])

    assert result.exit_code == 0, result.output
    post.assert_called_once_with(
        "/api/clusters_mgmt/v1/clusters",
        body={"name": "demo", "region": {"id": "us-east-1"}},
        params={"dry_run": "true"},
        headers={},
    )
    assert '"id": "abc"' in result.output


def test_post_reads_body_from_stdin(config_file, make_token, mocker):
    """Test that '-' reads the body from standard input."""
    _logged_in(config_file, make_token)
    post = mocker.patch("ocmcli.connection.Connection.post", return_value=httpx.Response(204))

    result = runner.invoke(app, ["post", "/api/accounts_mgmt/v1/register", "--body", "-"], input='{"a": 1}')

    assert result.exit_code == 0, result.output
    assert post.call_args.kwargs["body"] == {"a": 1}


def test_post_without_body(config_file, make_token, mocker):
    _logged_in(config_file, make_token)
    post = mocker.patch("ocmcli.connection.Connection.post", return_value=httpx.Response(204))

    result = runner.invoke(app, ["post", "/api/clusters_mgmt/v1/clusters/abc/hibernate"])

    assert result.exit_code == 0, result.output
    assert post.call_args.kwargs["body"] is None


def test_post_invalid_body(config_file, make_token, mocker, tmp_path):
    """Test that a body that isn't JSON is rejected before sending."""
    _logged_in(config_file, make_token)
    body = tmp_path / "body.json"
    body.write_text("name: demo")
    post = mocker.patch("ocmcli.connection.Connection.post")

    result = runner.invoke(app, ["post", "clusters", "--body", str(body)])

    assert result.exit_code == 1
    assert "Can't read body" in result.output
    post.assert_not_called()


def test_post_error_response_saves_tokens(config_file, make_token, mocker):
    """Test that an error response fails the command but keeps renewed tokens."""
    new_access = make_token("Bearer", 900)
    _write(
        config_file,
        access_token=make_token("Bearer", -300),
        refresh_token=make_token("Refresh", 36000),
        url=DEFAULT_URL,
        token_url=DEFAULT_TOKEN_URL,
    )
    mocker.patch(
        "ocmcli.connection.Connection.tokens",
        return_value=(new_access, make_token("Refresh", 36000)),
    )
    mocker.patch(
        "ocmcli.connection.Connection.post",
        return_value=httpx.Response(400, json={"kind": "Error", "reason": "Invalid cluster name"}),
    )

    result = runner.invoke(app, ["post", "clusters"])

    assert result.exit_code == 1
    assert "Invalid cluster name" in result.output
    assert FileStore(config_file).load().access_token == new_access


# --- config help ---


def test_config_help_names_current_file(config_file):
    """Test that the help shows the file chosen when it is displayed."""
    result = runner.invoke(app, ["config", "--help"])

    assert result.exit_code == 0
    assert str(config_file) in result.output
    assert "access_token" in result.output


def test_config_help_names_current_keyring(memory_keyring):
    """Test that the help shows the keyring selected with OCM_KEYRING."""
    result = runner.invoke(app, ["config", "--help"])

    assert result.exit_code == 0
    assert "keyring 'memory'" in result.output


def test_config_help_with_unavailable_keyring(mocker, monkeypatch):
    """Test that the help still renders when OCM_KEYRING is invalid."""
    mocker.patch("ocmcli.store.available_backends", return_value={})
    monkeypatch.setenv("OCM_KEYRING", "keychain")

    result = runner.invoke(app, ["config", "--help"])

    assert result.exit_code == 0
    assert "unavailable" in result.output
