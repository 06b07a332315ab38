"""Tests for the command-line entry point"""

import argparse
import logging
import os
import tempfile
from unittest import mock

import pytest
import requests

from prometheus_alert_check import main as main_module
from prometheus_alert_check.check import CheckStatus
from prometheus_alert_check.config.settings import get_default_config
from prometheus_alert_check.main import apply_args, build_parser, key_value, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove environment variables read by the configuration"""
    for name in ('PROMETHEUS_URL', 'PROMETHEUS_SKIP_VERIFY', 'PROMETHEUS_CACERT',
                 'PROMETHEUS_TIMEOUT', 'LOG_LEVEL', 'LOG_FORMAT'):
        monkeypatch.delenv(name, raising=False)
    yield
    logging.getLogger('prometheus_alert_check').handlers.clear()


def patch_session(body=None, error=None):
    session = mock.Mock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
    else:
        response = mock.Mock(status_code=200, ok=True)
        response.json.return_value = body
        session.get.return_value = response
    return mock.patch("prometheus_alert_check.alerts.alert_source.requests.Session", return_value=session)


class TestParser:
    """Test argument parsing"""

    def test_key_value(self):
        """Test NAME=REGEX parsing"""
        assert key_value("team=(infra|^$)") == ("team", "(infra|^$)")
        assert key_value("team=") == ("team", "")
        assert key_value("expr=a=b") == ("expr", "a=b")

    @pytest.mark.parametrize("argument", ["team", "=infra"])
    def test_key_value_invalid(self, argument):
        """Test rejecting malformed filters"""
        with pytest.raises(argparse.ArgumentTypeError):
            key_value(argument)

    def test_repeatable_filters(self):
        """Test that --label and --annotation can be repeated"""
        args = build_parser().parse_args([
            "-l", "severity=page", "--label", "team=infra", "-a", "summary=disk",
        ])
        assert args.label == [("severity", "page"), ("team", "infra")]
        assert args.annotation == [("summary", "disk")]

    def test_apply_args(self):
        """Test command-line values override the configuration"""
        args = build_parser().parse_args([
            "-u", "https://prom", "-i", "-T", "/ca.pem", "-t", "5", "-f",
            "-l", "severity=page", "-v", "--log-format", "json",
        ])
        config = get_default_config()
        config['filters']['labels'] = {'team': 'infra'}

        config = apply_args(config, args)

        assert config['prometheus'] == {
            'url': 'https://prom',
            'insecure_skip_verify': True,
            'trusted_ca_file': '/ca.pem',
            'timeout': 5,
        }
        assert config['filters']['firing'] is True
        assert config['filters']['pending'] is False
        assert config['filters']['labels'] == {'team': 'infra', 'severity': 'page'}
        assert config['logging']['verbose'] is True
        assert config['logging']['format'] == 'json'

    def test_apply_no_args(self):
        """Test that omitted flags keep the configured values"""
        config = get_default_config()
        config['prometheus']['insecure_skip_verify'] = True
        config = apply_args(config, build_parser().parse_args([]))
        assert config['prometheus']['insecure_skip_verify'] is True
        assert config['prometheus']['url'] == 'http://127.0.0.1:9090/'


class TestMain:
    """Test main()"""

    def test_ok(self, capsys):
        """Test a passing check"""
        with patch_session({"status": "success", "data": {"alerts": []}}):
            status = main(["-u", "http://prom:9090"])

        assert status == CheckStatus.OK
        assert "OK: Check passed" in capsys.readouterr().out

    def test_found_alerts(self, capsys):
        """Test a failing check prints the alerts"""
        body = {"status": "success", "data": {"alerts": [
            {"state": "firing", "labels": {"alertname": "DiskFull"}, "annotations": {}},
        ]}}
        with patch_session(body):
            status = main(["-u", "http://prom:9090", "--firing", "-l", "alertname=Disk"])

        out = capsys.readouterr().out
        assert status == CheckStatus.CRITICAL
        assert "1 FOUND ALERTS" in out
        assert '"alertname": "DiskFull"' in out

    def test_conflicting_flags(self, capsys):
        """Test that --firing with --pending is a warning"""
        with patch_session({"status": "success", "data": {"alerts": []}}) as session_class:
            status = main(["-u", "http://prom:9090", "-f", "-p"])

        assert status == CheckStatus.WARNING
        assert "WARNING" in capsys.readouterr().out
        session_class.assert_not_called()

    def test_missing_config_file(self, capsys):
        """Test that an unreadable config file is a warning"""
        status = main(["-c", "/nonexistent/check.yaml"])
        assert status == CheckStatus.WARNING

    def test_transport_failure(self, capsys):
        """Test that a connection failure is critical"""
        with patch_session(error=requests.exceptions.ConnectionError("refused")):
            status = main(["-u", "http://prom:9090"])

        assert status == CheckStatus.CRITICAL
        assert "unable to fetch alerts" in capsys.readouterr().out

    def test_unexpected_error(self, capsys):
        """Test that an unexpected exception gives UNKNOWN"""
        with mock.patch.object(main_module, "run_check", side_effect=RuntimeError("boom")):
            status = main(["-u", "http://prom:9090"])

        assert status == CheckStatus.UNKNOWN
        assert "UNKNOWN: boom" in capsys.readouterr().out

    def test_url_from_env(self, monkeypatch, capsys):
        """Test reading the URL from PROMETHEUS_URL"""
        monkeypatch.setenv('PROMETHEUS_URL', 'http://env-prom:9090')
        with patch_session({"status": "success", "data": {"alerts": []}}) as session_class:
            status = main([])

        assert status == CheckStatus.OK
        session = session_class.return_value
        assert session.get.call_args.args[0] == "http://env-prom:9090/api/v1/alerts"

    @pytest.mark.parametrize("yaml_content", [
        "prometheus:\n  url: 9090\n",
        "prometheus:\n  url: [a]\n",
        "filters: null\n",
        "logging: null\n",
        "filters:\n  firing: \"false\"\n",
    ])
    def test_bad_config_values_are_warning(self, capsys, yaml_content):
        """Test that malformed values in the config file give WARNING, not UNKNOWN"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(yaml_content)
            temp_file = f.name

        try:
            with patch_session({"status": "success", "data": {"alerts": []}}) as session_class:
                status = main(["-c", temp_file])
        finally:
            os.unlink(temp_file)

        assert status == CheckStatus.WARNING
        assert "prometheus-alert-check WARNING" in capsys.readouterr().out
        session_class.assert_not_called()
