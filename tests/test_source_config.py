import pytest
from pydantic import TypeAdapter, ValidationError

from itmsplit.models.app_config import DEFAULT_DECODER, AppConfig
from itmsplit.models.decoder_settings import DecoderSettings
from itmsplit.models.source_config import (
    DEFAULT_SERVER_PORT,
    TRANSFER_SIZE,
    FileSourceConfig,
    NetworkSourceConfig,
    SourceConfig,
    parse_server,
)


def test_source_config_discriminates_network():
    adapter = TypeAdapter(SourceConfig)
    cfg = adapter.validate_python({"kind": "network", "host": "tracehost.local", "port": 2332})

    assert isinstance(cfg, NetworkSourceConfig)
    assert cfg.label == "tracehost.local:2332"
    assert cfg.transfer_size == TRANSFER_SIZE
    assert cfg.retry_interval_seconds == 1.0


def test_source_config_discriminates_file():
    adapter = TypeAdapter(SourceConfig)
    cfg = adapter.validate_python({"kind": "file", "path": "/tmp/trace.bin", "terminate_on_exhaustion": True})

    assert isinstance(cfg, FileSourceConfig)
    assert cfg.terminate_on_exhaustion is True


def test_file_source_requires_path():
    adapter = TypeAdapter(SourceConfig)

    with pytest.raises(ValidationError) as exc:
        adapter.validate_python({"kind": "file"})

    assert "path" in str(exc.value)


def test_network_port_must_be_valid():
    with pytest.raises(ValidationError):
        NetworkSourceConfig(port=70000)


def test_network_host_rejects_embedded_nul():
    with pytest.raises(ValidationError, match="NUL"):
        NetworkSourceConfig(host="trace\x00host")


def test_source_config_is_frozen():
    cfg = NetworkSourceConfig()

    with pytest.raises(ValidationError):
        cfg.port = 1234


def test_network_defaults():
    cfg = NetworkSourceConfig()

    assert cfg.host == "localhost"
    assert cfg.port == DEFAULT_SERVER_PORT


@pytest.mark.parametrize(
    "value, host, port",
    [
        ("localhost", "localhost", DEFAULT_SERVER_PORT),
        ("10.0.0.2:2332", "10.0.0.2", 2332),
        (":2332", "localhost", 2332),
    ],
)
def test_parse_server(value, host, port):
    cfg = parse_server(value)

    assert (cfg.host, cfg.port) == (host, port)


def test_parse_server_rejects_bad_port():
    with pytest.raises(ValueError):
        parse_server("host:abc")


def test_app_config_defaults_to_network_source():
    cfg = AppConfig()

    assert cfg.source.kind == "network"
    assert cfg.decoder_factory == DEFAULT_DECODER
    assert cfg.verbosity == 1


def test_decoder_settings_filewriter_requires_path():
    with pytest.raises(ValidationError, match="filewriter_path"):
        DecoderSettings(filewriter=True)


def test_decoder_settings_last_channel_wins():
    settings = DecoderSettings(
        channels=[{"index": 1, "name": "a"}, {"index": 1, "name": "b", "format": "%c"}]
    )

    assert settings.channel(1).name == "b"
    assert settings.channel(2) is None
