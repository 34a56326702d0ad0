"""Tests for decoder configuration."""

import logging

import pytest

from analyzer import Decoder
from config import ConfigValidationError, DecoderConfig


class TestDecoderConfig:
    """Tests for DecoderConfig validation."""

    def test_defaults(self):
        config = DecoderConfig()
        assert config.workers == 0
        assert config.compat is False
        assert config.tokens_file is None
        assert config.log_level == logging.WARNING

    def test_verbose_log_level(self):
        assert DecoderConfig(verbose=True).log_level == logging.DEBUG

    def test_negative_workers(self):
        with pytest.raises(ConfigValidationError):
            DecoderConfig(workers=-1)

    @pytest.mark.parametrize("workers", ["4", 1.5, True])
    def test_non_integer_workers(self, workers):
        with pytest.raises(ConfigValidationError):
            DecoderConfig(workers=workers)

    def test_missing_tokens_file(self, tmp_path):
        with pytest.raises(ConfigValidationError):
            DecoderConfig(tokens_file=str(tmp_path / "missing.tokens"))

    def test_is_value_error(self):
        assert issubclass(ConfigValidationError, ValueError)


class TestFromArgs:
    """Tests for building a configuration from docopt arguments."""

    def test_from_args(self):
        args = {"--workers": "4", "--compat": True, "--tokens": None, "--verbose": False}
        config = DecoderConfig.from_args(args)
        assert config.workers == 4
        assert config.compat is True
        assert config.tokens_file is None

    def test_missing_options(self):
        assert DecoderConfig.from_args({}) == DecoderConfig()

    def test_invalid_workers(self):
        with pytest.raises(ConfigValidationError):
            DecoderConfig.from_args({"--workers": "many"})


class TestCreateDecoder:
    """Tests for building a Decoder from a configuration."""

    def test_default_registry(self, registry):
        decoder = DecoderConfig(workers=4, compat=True).create_decoder()
        assert isinstance(decoder, Decoder)
        assert decoder.workers == 4
        assert decoder.compat is True
        assert decoder.registry is registry

    def test_tokens_file(self, tmp_path):
        path = tmp_path / "custom.tokens"
        path.write_text('version "9"\nscalar CALLSIGN -> arcid\n')
        decoder = DecoderConfig(tokens_file=str(path)).create_decoder()
        assert decoder.registry.version == "9"
        assert decoder.decode("-CALLSIGN ABC").arcid == "ABC"
