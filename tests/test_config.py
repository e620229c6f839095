"""
Configuration Tests
"""

import pytest

from api_server import build_monitor
from app.config import AppConfig, MonitorConfig, SupabaseConfig, WeatherConfig, get_config, reload_config
from app.errors import ConfigurationError, ServiceUnavailableError


class TestFromEnv:
    """Environment loading"""

    def test_defaults(self, monkeypatch):
        for name in ('SUPABASE_URL', 'SUPABASE_KEY', 'OPENWEATHER_API_KEY', 'DETECTOR_INTERVAL_SECONDS',
                     'SWEEP_INTERVAL_SECONDS', 'AVAILABLE_AIRCRAFT', 'DEBUG', 'LOG_LEVEL'):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env()

        assert config.supabase is None
        assert config.debug is False
        assert config.weather.is_ready() is False
        assert config.monitor.detector_interval_seconds == 30
        assert config.monitor.sweep_interval_seconds == 60
        assert config.monitor.available_aircraft == ['N550BA', 'N550BB', 'N550BC']

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv('SUPABASE_URL', 'https://example.supabase.co')
        monkeypatch.setenv('SUPABASE_KEY', 'service-key')
        monkeypatch.setenv('OPENWEATHER_API_KEY', 'abc123')
        monkeypatch.setenv('DETECTOR_INTERVAL_SECONDS', '15')
        monkeypatch.setenv('AVAILABLE_AIRCRAFT', 'n1ab, n2cd,')
        monkeypatch.setenv('DEBUG', 'true')

        config = AppConfig.from_env()

        assert config.supabase == SupabaseConfig(url='https://example.supabase.co', key='service-key')
        assert config.weather.is_ready() is True
        assert config.monitor.detector_interval_seconds == 15
        assert config.monitor.available_aircraft == ['N1AB', 'N2CD']
        assert config.debug is True


class TestValidate:
    """Configuration issues"""

    def test_reports_missing_services(self):
        config = AppConfig(debug=False, log_level='INFO', supabase=None,
                           weather=WeatherConfig(api_key=None), monitor=MonitorConfig())

        issues = config.validate()

        assert any('Supabase' in issue for issue in issues)
        assert any('OPENWEATHER_API_KEY' in issue for issue in issues)

    def test_bad_monitor_rules(self):
        monitor = MonitorConfig(detector_interval_seconds=0, available_aircraft=[],
                                curfews={'KTEB': (23, 25)})

        issues = monitor.validate()

        assert len(issues) == 3


class TestSingleton:
    """get_config / reload_config"""

    def test_reload_picks_up_environment(self, monkeypatch):
        monkeypatch.setenv('SWEEP_INTERVAL_SECONDS', '90')
        first = reload_config()
        monkeypatch.setenv('SWEEP_INTERVAL_SECONDS', '120')

        assert get_config() is first
        assert reload_config().monitor.sweep_interval_seconds == 120


class TestBuildMonitor:
    """Server wiring"""

    def test_rejects_invalid_rules(self):
        config = AppConfig(debug=False, log_level='INFO', supabase=None,
                           weather=WeatherConfig(api_key=None),
                           monitor=MonitorConfig(sweep_interval_seconds=0))

        with pytest.raises(ConfigurationError):
            build_monitor(config)

    def test_requires_supabase(self):
        config = AppConfig(debug=False, log_level='INFO', supabase=None,
                           weather=WeatherConfig(api_key=None), monitor=MonitorConfig())

        with pytest.raises(ServiceUnavailableError):
            build_monitor(config)
