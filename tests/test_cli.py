import pytest
from unittest.mock import patch, MagicMock
import os
import sys

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cli.main import main
from core.config import build_settings, parse_port, RANDOM_PORT_MIN, RANDOM_PORT_SPAN
from core.errors import ConfigError


@pytest.fixture
def share_dir(tmp_path, monkeypatch):
    """Directory with a single shared file."""
    (tmp_path / "notes.txt").write_text("hello")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def mock_upnp():
    """Keep UPnP discovery off the network; no gateway answers by default."""
    with patch("cli.main.PortMapping") as mapping_cls:
        mapping_cls.return_value.open.return_value = None
        yield mapping_cls


@pytest.fixture
def mock_runner():
    """Replace the uvicorn runner so nothing binds a socket."""
    with patch("cli.main.ServerRunner") as runner_cls:
        runner_cls.return_value.run.return_value = True
        yield runner_cls


# Test configuration
@pytest.mark.parametrize("text,expected", [("8080", 8080), ("0x1f90", 8080), ("1", 1), ("65534", 65534)])
def test_parse_port(text, expected):
    """Test valid port numbers."""
    assert parse_port(text) == expected


@pytest.mark.parametrize("text", ["0", "65535", "70000", "-1", "http", "80a", ""])
def test_parse_port_invalid(text):
    """Test invalid port numbers."""
    with pytest.raises(ConfigError) as exc_info:
        parse_port(text)
    assert str(exc_info.value) == f"Invalid port number: {text}"


def test_build_settings_defaults():
    """Test defaults when only files are given."""
    with patch("core.config.DEFAULT_PORT", None), \
         patch("core.config.DEFAULT_BIND", "0.0.0.0"), \
         patch("core.config.DEFAULT_PREFIX", None):
        settings = build_settings(["a.txt"])

    assert settings.files == ["a.txt"]
    assert settings.bind == "0.0.0.0"
    assert RANDOM_PORT_MIN <= settings.port < RANDOM_PORT_MIN + RANDOM_PORT_SPAN
    assert settings.prefix is None
    assert settings.ssl is False
    assert settings.qrcode is True
    assert settings.scheme == "http"


def test_build_settings_overrides():
    """Test explicit values win and are normalised."""
    settings = build_settings(
        ["a.txt"], port="9000", bind="127.0.0.1", prefix="/shared/", ssl=True, log_level="debug", qrcode=None,
    )

    assert settings.port == 9000
    assert settings.bind == "127.0.0.1"
    assert settings.prefix == "shared"
    assert settings.scheme == "https"
    assert settings.log_level == "DEBUG"
    assert settings.qrcode is True


def test_build_settings_environment():
    """Test environment defaults are used when the CLI is silent."""
    with patch("core.config.DEFAULT_PORT", "7000"), patch("core.config.DEFAULT_PREFIX", "env"):
        settings = build_settings(["a.txt"])
    assert settings.port == 7000
    assert settings.prefix == "env"


def test_build_settings_invalid():
    """Test validation failures surface as ConfigError."""
    with pytest.raises(ConfigError):
        build_settings([])
    with pytest.raises(ConfigError):
        build_settings(["a.txt"], port="8000", log_level="chatty")


# Test the command line
def test_version(capsys):
    """Test --version prints and exits."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == "pshare 1.0.0"


def test_no_files(capsys, mock_runner):
    """Test usage is printed and startup fails without files."""
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().err
    mock_runner.assert_not_called()


def test_invalid_port(capsys, mock_runner):
    """Test an invalid port aborts startup."""
    assert main(["-p", "99999", "notes.txt"]) == 1
    assert "Invalid port number: 99999" in capsys.readouterr().err
    mock_runner.assert_not_called()


def test_main_serves(share_dir, capsys, mock_runner, mock_upnp):
    """Test a full startup with the server mocked out."""
    with patch("cli.main.reachable_address", return_value="192.168.1.5"):
        assert main(["-p", "8080", "--no-qrcode", "./notes.txt"]) == 0

    err = capsys.readouterr().err
    assert "Ready to share 1 files." in err
    assert "Bound to 0.0.0.0:8080." in err
    assert "Server reachable at: http://192.168.1.5:8080/notes.txt" in err

    app, bind, port, tls, port_mapping = mock_runner.call_args.args
    assert (bind, port, tls) == ("0.0.0.0", 8080, None)
    assert port_mapping is mock_upnp.return_value
    assert app.state.dispatcher.registry.entries[0].display_name == "notes.txt"
    mock_runner.return_value.run.assert_called_once()


def test_main_prefix_url(share_dir, capsys, mock_runner):
    """Test the announced URL points at the prefixed index for several files."""
    with patch("cli.main.reachable_address", return_value="10.0.0.2"):
        assert main(["-P", "shared", "-p", "8000", "-Q", "notes.txt", "other.txt"]) == 0

    assert "Server reachable at: http://10.0.0.2:8000/shared/" in capsys.readouterr().err


def test_main_no_address(share_dir, capsys, mock_runner):
    """Test no URL is printed without a reachable address."""
    with patch("cli.main.reachable_address", return_value=None):
        assert main(["-p", "8000", "notes.txt"]) == 0

    assert "Server reachable at" not in capsys.readouterr().err


def test_main_ssl_error(share_dir, mock_runner):
    """Test TLS setup failures abort startup."""
    with patch("cli.main.reachable_address", return_value=None):
        assert main(["-s", "--ssl-cert", "missing.crt", "-p", "8000", "notes.txt"]) == 1
    mock_runner.assert_not_called()


def test_main_server_failure(share_dir, mock_runner):
    """Test exit status when the server did not start."""
    mock_runner.return_value.run.return_value = False
    with patch("cli.main.reachable_address", return_value=None):
        assert main(["-p", "8000", "notes.txt"]) == 1


def test_main_upnp_external_address(share_dir, capsys, mock_runner, mock_upnp):
    """Test a UPnP mapping makes the announced URL use the external address."""
    mock_upnp.return_value.open.return_value = "203.0.113.7"
    with patch("cli.main.reachable_address", return_value="192.168.1.5"):
        assert main(["-p", "8080", "-Q", "notes.txt"]) == 0

    mock_upnp.assert_called_once_with(8080, "192.168.1.5")
    assert "Server reachable at: http://203.0.113.7:8080/notes.txt" in capsys.readouterr().err


def test_main_no_upnp(share_dir, capsys, mock_runner, mock_upnp):
    """Test --no-upnp skips port mapping."""
    with patch("cli.main.reachable_address", return_value="192.168.1.5"):
        assert main(["-U", "-p", "8080", "-Q", "notes.txt"]) == 0

    mock_upnp.assert_not_called()
    assert mock_runner.call_args.args[4] is None
    assert "Server reachable at: http://192.168.1.5:8080/notes.txt" in capsys.readouterr().err


def test_main_upnp_removed_on_config_error(share_dir, mock_runner, mock_upnp):
    """Test the mapping is removed when startup fails after it was made."""
    with patch("cli.main.reachable_address", return_value="192.168.1.5"):
        assert main(["-s", "--ssl-cert", "missing.crt", "-p", "8000", "notes.txt"]) == 1

    mock_upnp.return_value.close.assert_called_once()


if __name__ == "__main__":
    pytest.main(["-xvs", __file__])
