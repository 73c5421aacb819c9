"""Tests for config.py — environment loading and validation."""

from tariff_harvester.config import HarvesterConfig, load_env


class TestHarvesterConfig:
    def test_defaults(self):
        config = HarvesterConfig()
        assert config.base_url == "https://www.vodafone.co.uk"
        assert config.probe_delay == 0.7
        assert config.validate() == []

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TARIFF_BASE_URL", "http://localhost:8080/")
        monkeypatch.setenv("TARIFF_PROBE_DELAY", "0")
        monkeypatch.setenv("TARIFF_PORT", "9000")
        monkeypatch.setenv("TARIFF_LOG_LEVEL", "debug")
        config = HarvesterConfig.from_env()
        assert config.origin == "http://localhost:8080"
        assert config.probe_delay == 0
        assert config.port == 9000
        assert config.log_level == "DEBUG"

    def test_derived_urls(self):
        config = HarvesterConfig(base_url="https://www.shop.test/some/path")
        assert config.origin == "https://www.shop.test"
        assert config.hostname == "www.shop.test"
        assert config.listing_url == "https://www.shop.test/mobile/phones/pay-monthly-contracts"
        assert config.digital_api_url.endswith("/pay-monthly-contracts/api/digital/v2")

    def test_validate_problems(self):
        config = HarvesterConfig(base_url="ftp://x", timeout=0, probe_delay=-1, log_level="LOUD")
        problems = config.validate()
        assert len(problems) == 4
        assert "TARIFF_BASE_URL" in problems[0]


class TestLoadEnv:
    def test_reads_local_env(self, tmp_path, monkeypatch):
        (tmp_path / "local.env").write_text('# comment\nTARIFF_PORT="6123"\nTARIFF_HOST=0.0.0.0\n')
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("TARIFF_PORT", raising=False)
        monkeypatch.setenv("TARIFF_HOST", "127.0.0.2")
        load_env()
        assert HarvesterConfig.from_env().port == 6123
        assert HarvesterConfig.from_env().host == "127.0.0.2"
