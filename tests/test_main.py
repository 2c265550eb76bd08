"""
Tests for the command-line interface

Run with:
    pytest tests/test_main.py -v
"""

import json
import sys

import pytest

from transdata_nexus import main as cli


@pytest.fixture
def run_cli(monkeypatch, tmp_path):
    """Run the CLI against a SQLite file and reports directory under tmp_path"""
    monkeypatch.setenv('TDN_DB_TYPE', 'sqlite')
    monkeypatch.setenv('TDN_SQLITE_PATH', str(tmp_path / 'transdata.db'))
    monkeypatch.setenv('TDN_REPORTS_DIR', str(tmp_path / 'reports'))
    monkeypatch.setattr(cli, 'setup_logging', lambda *args, **kwargs: None)

    def run(*argv):
        monkeypatch.setattr(sys, 'argv', ['transdata_nexus', *argv])
        return cli.main()

    return run


@pytest.fixture
def shipments_csv(tmp_path):
    path = tmp_path / 'shipments.csv'
    path.write_text(
        'product_description,supplier_name,buyer_name,country_of_destination,'
        'unit_rate_usd,total_value_usd,shipping_bill_date,year\n'
        'Paracetamol 500mg,Acme Pharma,Global Health,United States,10,10000,2024-01-15,2024\n'
        'Paracetamol 500mg,Beta Labs,Medico LLC,Germany,12,6000,2024-02-10,2024\n'
    )
    return path


class TestCommands:
    """Tests for the CLI command handlers"""

    def test_no_command(self, run_cli, capsys):
        assert run_cli() == 0
        assert 'usage' in capsys.readouterr().out

    def test_load_and_analyze(self, run_cli, shipments_csv, tmp_path, capsys):
        assert run_cli('load-csv', str(shipments_csv)) == 0
        assert 'Rows inserted: 2' in capsys.readouterr().out

        output = tmp_path / 'analytics.json'
        assert run_cli('analyze', 'paracetamol', '--advanced', '-o', str(output)) == 0

        payload = json.loads(output.read_text())
        assert payload['metrics']['totalValue'] == 16000

    def test_analyze_no_data(self, run_cli, capsys):
        assert run_cli('init-db') == 0
        assert run_cli('analyze', 'unobtainium', '--advanced') == 1
        assert 'No data found' in capsys.readouterr().out

    def test_html_report(self, run_cli, shipments_csv, capsys):
        run_cli('load-csv', str(shipments_csv))
        capsys.readouterr()

        assert run_cli('report', 'paracetamol', '--type', 'market-analysis', '--format', 'html') == 0
        assert 'Sections: 5' in capsys.readouterr().out

    def test_purge_reports(self, run_cli, capsys):
        assert run_cli('purge-reports') == 0
        assert 'Removed 0 expired reports' in capsys.readouterr().out


class TestLoggingSetup:
    """Tests for where the CLI writes its log files"""

    @pytest.fixture
    def log_dirs(self, run_cli, monkeypatch):
        seen = []
        monkeypatch.setattr(cli, 'setup_logging', lambda name, log_dir=None, **kwargs: seen.append(log_dir))
        return seen

    def test_log_dir_from_environment(self, run_cli, log_dirs, monkeypatch, tmp_path):
        monkeypatch.setenv('TDN_LOG_DIR', str(tmp_path / 'env-logs'))

        assert run_cli('purge-reports') == 0
        assert log_dirs == [tmp_path / 'env-logs']

    def test_flag_overrides_environment(self, run_cli, log_dirs, monkeypatch, tmp_path):
        monkeypatch.setenv('TDN_LOG_DIR', str(tmp_path / 'env-logs'))

        assert run_cli('--log-dir', str(tmp_path / 'cli-logs'), 'purge-reports') == 0
        assert log_dirs == [tmp_path / 'cli-logs']

    def test_console_only_by_default(self, run_cli, log_dirs, monkeypatch):
        monkeypatch.delenv('TDN_LOG_DIR', raising=False)

        assert run_cli('purge-reports') == 0
        assert log_dirs == [None]
